from typing import Dict, Any, Type, TypeVar, ClassVar, Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict

T = TypeVar('T', bound='DTO')


class DTO(BaseModel):
    """数据传输对象基类 - 整合 Pydantic 支持

    提供以下功能：
    1. 继承 Pydantic BaseModel，自动支持字段验证和序列化
    2. 支持从 ORM 实体创建 DTO (from_entity)
    3. 支持从列表批量转换 (from_list)
    4. 支持字段值处理器 (_value_processors) - 创建时转换值

    使用示例::

        class TreeResponse(DTO):
            id: int
            name: str
            created_at: Optional[str] = None

        tree = TreeResponse.from_entity(entity)
        trees = TreeResponse.from_list(entities)
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    # 字段值处理器（from_entity 创建时转换值）
    # 字段类型声明应与处理器转换后的类型一致
    _value_processors: ClassVar[Dict[str, Any]] = {}

    @staticmethod
    def _format_datetime(value) -> Optional[str]:
        """datetime 格式化为 'YYYY-MM-DD HH:MM:SS'"""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.strftime('%Y-%m-%d %H:%M:%S')
        return str(value)

    @classmethod
    def _process_value(cls, value) -> Any:
        """处理单个值：空字典转 None，datetime 格式化"""
        if isinstance(value, dict) and not value:
            return None
        if isinstance(value, datetime):
            return cls._format_datetime(value)
        return value

    @classmethod
    def from_entity(cls: Type[T], entity) -> T:
        """从实体对象创建 DTO 实例

        处理流程：
        1. 从实体提取与 DTO 字段同名的属性
        2. 处理空值和 datetime 格式化
        3. 应用 _value_processors 转换值
        4. 创建 DTO 实例（Pydantic 验证）
        """
        kwargs = {}

        for field_name in cls.model_fields:
            if hasattr(entity, field_name):
                kwargs[field_name] = cls._process_value(getattr(entity, field_name))

        for field_name, processor in cls._value_processors.items():
            if field_name in kwargs:
                kwargs[field_name] = processor(kwargs[field_name])

        return cls(**kwargs)

    @classmethod
    def from_list(cls: Type[T], items) -> List[T]:
        """从列表批量转换为 DTO 列表"""
        if items is None:
            return []
        return [cls.from_entity(item) for item in items]
