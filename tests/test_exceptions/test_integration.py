"""测试异常处理集成场景

测试业务异常、参数验证、HTTP 异常和未处理异常转换为统一的 JSON 响应。
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field, field_validator

from ytree.exceptions import (
    Err,
    ErrorCode,
    InvalidTreeOperationException,
    MalformedHierarchyException,
    TreeNodeNotFoundException,
    TreeNotFoundException,
    ValidationErrorTranslator,
    register_exception_handlers,
)


class SortPayload(BaseModel):
    name: str = Field(min_length=1, max_length=5)
    sort_order: int = Field(ge=0)

    @field_validator("name")
    @classmethod
    def no_spaces(cls, value):
        if " " in value:
            raise ValueError("名称不能包含空格")
        return value


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/tree/{tree_id}")
    async def get_tree(tree_id: int):
        raise TreeNotFoundException(tree_id)

    @app.get("/tree/{tree_id}/node/{node_id}")
    async def get_node(tree_id: int, node_id: int):
        raise TreeNodeNotFoundException(node_id, tree_id=tree_id)

    @app.get("/malformed")
    async def malformed():
        raise MalformedHierarchyException(tree_id=1, node_count=3)

    @app.get("/invalid")
    async def invalid():
        raise InvalidTreeOperationException("树已被删除", tree_id=1)

    @app.get("/conflict")
    async def conflict():
        raise Err.conflict("已存在同名的树", code=ErrorCode.TREE_NAME_EXISTS, details=["name"])

    @app.get("/http")
    async def http_error():
        raise HTTPException(status_code=403, detail="禁止访问")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database is locked")

    @app.post("/sort")
    async def sort(payload: SortPayload):
        return {"ok": True}

    return TestClient(app, raise_server_exceptions=False)


class TestBusinessExceptions:
    """业务异常响应"""

    def test_tree_not_found(self, client):
        response = client.get("/tree/9")

        assert response.status_code == 404
        assert response.json() == {
            "status": "error",
            "message": "树不存在: 9",
            "msg_details": [],
            "data": {},
            "error_code": "TREE_NOT_FOUND",
        }

    def test_node_not_found_message(self, client):
        body = client.get("/tree/2/node/5").json()

        assert body["message"] == "树 2 中不存在节点: 5"
        assert body["error_code"] == "TREE_NODE_NOT_FOUND"

    def test_malformed_is_conflict(self, client):
        response = client.get("/malformed")

        assert response.status_code == 409
        assert response.json()["error_code"] == "MALFORMED_HIERARCHY"

    def test_invalid_operation(self, client):
        response = client.get("/invalid")

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_TREE_OPERATION"

    def test_details_passed_through(self, client):
        body = client.get("/conflict").json()

        assert body["msg_details"] == ["name"]
        assert body["error_code"] == "TREE_NAME_EXISTS"

    def test_debug_info(self, client, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")

        body = client.get("/invalid").json()

        assert body["debug_info"] == {"tree_id": "1"}


class TestFrameworkExceptions:
    """HTTP、验证和未处理异常"""

    def test_http_exception(self, client):
        response = client.get("/http")

        assert response.status_code == 403
        assert response.json()["error_code"] == "HTTP_403"
        assert response.json()["message"] == "禁止访问"

    def test_unknown_route(self, client):
        assert client.get("/missing").json()["error_code"] == "HTTP_404"

    def test_unhandled_exception(self, client):
        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error_code"] == "INTERNAL_SERVER_ERROR"
        assert response.json()["msg_details"] == []

    def test_validation_messages_translated(self, client):
        response = client.post("/sort", json={"name": "", "sort_order": -1})
        body = response.json()

        assert response.status_code == 422
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "name: 长度不能少于 1 个字符" in body["msg_details"]
        assert "sort_order: 必须大于或等于 0" in body["msg_details"]

    def test_value_error_uses_validator_message(self, client):
        body = client.post("/sort", json={"name": "a b", "sort_order": 0}).json()

        assert body["msg_details"] == ["name: 名称不能包含空格"]

    def test_missing_field(self, client):
        body = client.post("/sort", json={"name": "a"}).json()

        assert body["msg_details"] == ["sort_order: 此字段为必填项"]


class TestValidationErrorTranslator:

    def test_custom_message_wins(self, monkeypatch):
        monkeypatch.setattr(ValidationErrorTranslator, "_custom_messages", {})
        ValidationErrorTranslator.add_messages({"int_parsing": "请输入数字"})

        assert ValidationErrorTranslator.translate("int_parsing", {}) == "请输入数字"

    def test_unknown_type(self):
        assert ValidationErrorTranslator.translate("no_such_type", {}) is None

    def test_template_without_context(self):
        assert ValidationErrorTranslator.translate("string_too_long", {}) == "长度不能超过 {max_length} 个字符"
