"""事务管理器测试

测试 TransactionManager 的核心功能：
1. 提交与回滚
2. 嵌套加入现有事务
3. commit=True 在事务中被抑制
4. transactional 装饰器
"""

import pytest
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, scoped_session, sessionmaker

from ytree.orm import BaseModel, CoreModel
from ytree.orm.transaction import (
    TransactionContext,
    TransactionError,
    TransactionState,
    get_current_transaction,
    transaction_manager,
)


class TxTestItem(BaseModel):
    """事务测试模型"""
    __tablename__ = "test_tx_items"
    __table_args__ = {"extend_existing": True}

    name: Mapped[str] = mapped_column(String(100))
    amount: Mapped[int] = mapped_column(Integer, default=0)


class TestTransactionManager:
    """事务管理器"""

    @pytest.fixture(autouse=True)
    def setup_db(self, memory_engine):
        """自动初始化数据库会话"""
        BaseModel.metadata.create_all(bind=memory_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
        self.session_scope = scoped_session(SessionLocal)
        CoreModel.query = self.session_scope.query_property()
        yield
        self.session_scope.remove()

    def transaction(self, **kwargs):
        return transaction_manager.transaction(session=self.session_scope(), **kwargs)

    def test_commit(self):
        with self.transaction() as tx:
            item = TxTestItem(name="commit").save(commit=True)
            item_id = item.id

        assert tx.state == TransactionState.COMMITTED
        assert TxTestItem.get(item_id).name == "commit"

    def test_rollback_on_exception(self):
        with pytest.raises(ValueError):
            with self.transaction() as tx:
                TxTestItem(name="rollback").save(commit=True)
                raise ValueError("boom")

        assert tx.state == TransactionState.ROLLED_BACK
        assert TxTestItem.query.count() == 0

    def test_save_commit_suppressed_inside_transaction(self):
        """事务内 commit=True 只 flush，异常时整体回滚"""
        with pytest.raises(RuntimeError):
            with self.transaction():
                first = TxTestItem(name="a").save(commit=True)
                assert first.id is not None
                TxTestItem(name="b").save(commit=True)
                raise RuntimeError("fail")

        assert TxTestItem.query.count() == 0

    def test_nested_transaction_joins(self):
        with self.transaction() as outer:
            with self.transaction() as inner:
                assert inner is outer
                assert outer.nesting_level == 2
                TxTestItem(name="nested").save()
            assert outer.nesting_level == 1
            assert outer.is_active

        assert outer.state == TransactionState.COMMITTED
        assert TxTestItem.query.count() == 1

    def test_inner_error_rolls_back_outer(self):
        with pytest.raises(KeyError):
            with self.transaction():
                TxTestItem(name="outer").save()
                with self.transaction():
                    raise KeyError("inner")

        assert TxTestItem.query.count() == 0

    def test_current_transaction_reset(self):
        assert get_current_transaction() is None
        with self.transaction() as tx:
            assert get_current_transaction() is tx
        assert get_current_transaction() is None

    def test_suppress_commit_flag(self):
        with self.transaction() as tx:
            assert tx.should_suppress_commit() is True
        with self.transaction(suppress_commit=False) as tx:
            assert tx.should_suppress_commit() is False

    def test_transactional_decorator(self, monkeypatch):
        monkeypatch.setattr(transaction_manager, "get_session", lambda: self.session_scope())

        @transaction_manager.transactional()
        def create(name, fail=False):
            TxTestItem(name=name).save(commit=True)
            if fail:
                raise ValueError(name)

        create("ok")
        with pytest.raises(ValueError):
            create("bad", fail=True)

        assert [item.name for item in TxTestItem.query.order_by(TxTestItem.id).all()] == ["ok"]


class TestTransactionContext:
    """事务上下文状态"""

    def test_commit_inactive_raises(self, db_session):
        ctx = TransactionContext(db_session)

        with pytest.raises(TransactionError):
            ctx.commit()

    def test_rollback_after_commit_raises(self, db_session):
        ctx = TransactionContext(db_session)
        ctx.begin()
        ctx.commit()

        with pytest.raises(TransactionError):
            ctx.rollback()

    def test_terminal_states(self):
        assert TransactionState.COMMITTED.is_terminal()
        assert TransactionState.FAILED.is_terminal()
        assert not TransactionState.ACTIVE.is_terminal()
