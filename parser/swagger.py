import json
import logging
import yaml
from typing import Dict, FrozenSet, List, Optional

from payload.cycles import CHAIN_SEPARATOR, is_cyclic_chain

log = logging.getLogger(__name__)

DEFAULT_CYCLE_DEPTH = 4
COMBINERS = ("allOf", "anyOf", "oneOf")


class Endpoint:
    def __init__(self, path: str, method: str, parameters: List[Dict], request_body: Optional[Dict], raw: Optional[Dict] = None):
        self.path = path
        self.method = method.upper()
        self.parameters = parameters
        self.request_body = request_body
        self.raw = raw

    def __repr__(self):
        return f"<{self.method} {self.path}>"


class OpenAPIParser:
    """
    Loads an OpenAPI 2/3 description and lists the request body fields of each
    operation as '#'-joined chains (e.g. "owner#address#city"), the notation
    understood by the payload path functions.
    """

    def __init__(self, spec_path: Optional[str] = None, spec: Optional[Dict] = None):
        if spec is None and spec_path is None:
            raise ValueError("Either spec_path or spec is required")
        self.spec_path = spec_path
        self.spec = spec if spec is not None else self._load_spec()
        self.version = self._detect_version()
        self.endpoints: List[Endpoint] = []

    def _load_spec(self) -> Dict:
        with open(self.spec_path, 'r') as f:
            return yaml.safe_load(f) if self.spec_path.endswith(('.yaml', '.yml')) else json.load(f)

    def _detect_version(self) -> str:
        if 'swagger' in self.spec:
            return '2.0'
        elif 'openapi' in self.spec:
            return str(self.spec['openapi']).split('.')[0]
        else:
            raise ValueError("Unknown OpenAPI version")

    def parse(self) -> List[Endpoint]:
        if self.endpoints:
            return self.endpoints

        paths = self.spec.get("paths", {})
        for path, methods in paths.items():
            for method, op_obj in methods.items():
                if not isinstance(op_obj, dict) or method == "parameters":
                    continue
                parameters = op_obj.get("parameters", [])
                if self.version == '3':
                    request_body = self._extract_request_body_v3(op_obj)
                else:
                    request_body = self._extract_request_body_v2(parameters)

                self.endpoints.append(Endpoint(
                    path=path,
                    method=method,
                    parameters=parameters,
                    request_body=request_body,
                    raw=op_obj
                ))
        return self.endpoints

    def _extract_request_body_v3(self, op_obj: Dict) -> Optional[Dict]:
        request_body = self._deref(op_obj.get("requestBody", {}))
        schema = request_body.get("content", {}).get("application/json", {}).get("schema")
        return self._deref(schema) if schema else None

    def _extract_request_body_v2(self, parameters: List[Dict]) -> Optional[Dict]:
        for param in parameters:
            if param.get("in") == "body" and param.get("schema"):
                return self._deref(param["schema"])
        return None

    def _resolve_ref(self, ref: str) -> Optional[Dict]:
        parts = ref.lstrip("#/").split("/")
        obj = self.spec
        for part in parts:
            obj = obj.get(part)
            if obj is None:
                return None
        return obj

    def _deref(self, schema: Dict) -> Dict:
        seen = set()
        while isinstance(schema, dict) and "$ref" in schema:
            ref = schema["$ref"]
            if ref in seen:
                return {}
            seen.add(ref)
            schema = self._resolve_ref(ref)
        return schema or {}

    def get_request_fields(self, endpoint: Endpoint, cycle_depth: int = DEFAULT_CYCLE_DEPTH) -> List[str]:
        """
        List every request body field of endpoint. Self-referencing schemas are
        followed until the field chain repeats a property name at cycle_depth.
        """
        if not endpoint.request_body:
            return []
        fields: List[str] = []
        self._collect_fields(endpoint.request_body, "", fields, cycle_depth)
        return list(dict.fromkeys(fields))

    def _collect_fields(self, schema: Dict, prefix: str, fields: List[str], cycle_depth: int,
                        refs: FrozenSet[str] = frozenset()):
        # $refs entered since the chain last grew a property name
        if isinstance(schema, dict) and "$ref" in schema:
            if schema["$ref"] in refs:
                log.debug("Skipping self reference %s under %s", schema["$ref"], prefix or "$")
                return
            refs = refs | {schema["$ref"]}
        schema = self._deref(schema)

        for name, definition in schema.get("properties", {}).items():
            chain = f"{prefix}{CHAIN_SEPARATOR}{name}" if prefix else name
            if is_cyclic_chain(chain, cycle_depth):
                log.debug("Skipping cyclic field %s", chain)
                continue
            fields.append(chain)
            self._collect_fields(definition, chain, fields, cycle_depth)

        for comb in COMBINERS:
            for alternative in schema.get(comb, []):
                self._collect_fields(alternative, prefix, fields, cycle_depth, refs)

        if "items" in schema:
            self._collect_fields(schema["items"], prefix, fields, cycle_depth, refs)
