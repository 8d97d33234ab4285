from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


class ParameterInfo(BaseModel):
    name: str
    type: Optional[str] = None
    allows_null: bool = True
    default_value: Any = None
    is_variadic: bool = False


class ControllerInfo(BaseModel):
    """Handler half of a parsed route; type stays "closure" unless class+method resolve."""

    class_name: Optional[str] = None
    method: Optional[str] = None
    file_path: Optional[str] = None
    start_line: Optional[int] = None
    type: Literal["controller", "closure"] = "closure"


class RouteInfo(BaseModel):
    uri: str
    methods: list[str]
    name: Optional[str] = None
    domain: Optional[str] = None
    middleware: list[str] = Field(default_factory=list)
    parameters: list[str] = Field(default_factory=list)
    wheres: dict[str, str] = Field(default_factory=dict)
    controller: ControllerInfo = Field(default_factory=ControllerInfo)
    is_api: bool = False


class HandlerSignature(BaseModel):
    class_name: str
    method: str
    file_path: Optional[str] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    return_type: Optional[str] = None
    parameters: list[ParameterInfo] = Field(default_factory=list)
    uses: list[str] = Field(default_factory=list)


class MethodParameter(BaseModel):
    name: str
    type: Optional[str] = None
    optional: bool = False


class MethodSummary(BaseModel):
    name: str
    return_type: Optional[str] = None
    parameters: list[MethodParameter] = Field(default_factory=list)
    start_line: Optional[int] = None


class ControllerMethods(BaseModel):
    controller: str
    file_path: Optional[str] = None
    methods: list[MethodSummary] = Field(default_factory=list)


class NormalizedRule(BaseModel):
    name: str
    parameters: list[str] = Field(default_factory=list)


class AuthorizationInfo(BaseModel):
    has_authorize: bool
    authorized: Optional[bool] = None
    type: Optional[Literal["boolean", "gate/policy"]] = None
    error_message: Optional[str] = None


class InputContract(BaseModel):
    class_name: str
    file_path: Optional[str] = None
    rules: dict[str, list[NormalizedRule]] = Field(default_factory=dict)
    messages: dict[str, str] = Field(default_factory=dict)
    attributes: dict[str, str] = Field(default_factory=dict)
    authorization: AuthorizationInfo


class OutputContract(BaseModel):
    controller: str
    method: str
    return_type: Optional[str] = None
    kind: Optional[Literal["json_resource", "model"]] = None
    file_path: Optional[str] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None


class ExampleContract(BaseModel):
    http_method: str
    uri: str
    request_body: Optional[dict[str, Any]] = None
    expected_response_type: Optional[str] = None


class EndpointRef(BaseModel):
    uri: str
    method: str
    name: Optional[str] = None


class EndpointAnalysis(BaseModel):
    endpoint: EndpointRef
    route: RouteInfo
    controller: Optional[HandlerSignature] = None
    request: Optional[InputContract] = None
    response: Optional[OutputContract] = None
    example: Optional[ExampleContract] = None
    errors: dict[str, str] = Field(default_factory=dict)


class RouteDetails(BaseModel):
    route: RouteInfo
    controller: Optional[HandlerSignature] = None
    request_class: Optional[str] = None
    resource_class: Optional[str] = None
