"""
Outbound request assembler.

Interprets the operation table: given an OperationRequest it produces the
method, interpolated path, query parameters and JSON body of the call. It
never performs I/O; the service layer sends what is built here.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from whaapy.api.fields import is_empty, parse_collection, parse_json_field, set_path
from whaapy.api.messages import collection_value
from whaapy.api.operations import (
    FieldRule,
    OperationRequest,
    OperationSpec,
    Preflight,
    Target,
    get_operation_spec,
)
from whaapy.workflows.engine.errors import NodeValidationError, UnsupportedOperationError

logger = logging.getLogger(__name__)


@dataclass
class OutboundRequest:
    method: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{self.path}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"method": self.method, "path": self.path}
        if self.query:
            data["query"] = self.query
        if self.body is not None:
            data["body"] = self.body
        return data


def _spec_for(request: OperationRequest) -> OperationSpec:
    spec = get_operation_spec(request.resource, request.operation)
    if spec.unsupported:
        raise UnsupportedOperationError(spec.unsupported)
    return spec


def _rule_value(rule: FieldRule, fields: Mapping[str, Any]) -> Any:
    if rule.collection:
        value = collection_value(fields, rule.collection, rule.name)
    else:
        value = fields.get(rule.name)

    if is_empty(value) or value in rule.skip:
        value = rule.default
    if is_empty(value):
        if rule.required:
            raise NodeValidationError(f"Parameter '{rule.name}' is required")
        return None

    if rule.json:
        value = parse_json_field(rule.name, value)
    return value


def build_preflight(request: OperationRequest) -> Optional[Preflight]:
    """
    Return the lookup that must run before ``request`` can be built, if any.

    Raises:
        UnsupportedOperationError: For operations that cannot be performed at all
    """
    spec = _spec_for(request)
    if spec.preflight is None:
        return None
    return spec.preflight(request.fields)


def build_request(request: OperationRequest) -> OutboundRequest:
    """
    Assemble the HTTP call for one operation request.

    Empty values ("" and None) are left out. JSON-typed fields are decoded
    from text, structured values pass through.

    Raises:
        NodeValidationError: When a required value is missing or malformed
        UnsupportedOperationError: For operations that cannot be performed at all
    """
    spec = _spec_for(request)
    fields = request.fields

    path_values: Dict[str, str] = {}
    query: Dict[str, Any] = {}
    body: Dict[str, Any] = spec.body_builder(fields) if spec.body_builder else {}
    has_body = spec.body_builder is not None

    for rule in spec.fields:
        has_body = has_body or rule.target == Target.BODY
        value = _rule_value(rule, fields)
        if value is None:
            continue
        if rule.target == Target.PATH:
            path_values[rule.name] = quote(str(value), safe="")
        elif rule.target == Target.QUERY:
            query[rule.destination] = value
        else:
            set_path(body, rule.destination, value)

    for collection_rule in spec.collections:
        has_body = has_body or collection_rule.target == Target.BODY
        values = parse_collection(collection_rule.collection, fields.get(collection_rule.collection))
        for key, value in values.items():
            if is_empty(value):
                continue
            if key in collection_rule.json_fields:
                value = parse_json_field(key, value)
            destination = collection_rule.renames.get(key, key)
            if collection_rule.target == Target.QUERY:
                query[destination] = value
            else:
                body[destination] = value

    outbound = OutboundRequest(
        method=spec.method,
        path=spec.path.format(**path_values),
        query=query,
        body=body if has_body else None,
    )
    logger.debug(f"Assembled {request.resource.value}.{request.operation.value}: {outbound.method} {outbound.path}")
    return outbound
