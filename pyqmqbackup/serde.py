import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional, Union

from .binary import ByteReader, pack_short_string
from .exceptions import EncodeError


class AttributeSerializer(ABC):
    @abstractmethod
    def serialize(self, attrs: Mapping[str, Any]) -> bytes:
        pass

    def __call__(self, attrs: Mapping[str, Any]) -> bytes:
        return self.serialize(attrs)


class AttributeDeserializer(ABC):
    @abstractmethod
    def deserialize(self, data: bytes) -> dict[str, Any]:
        pass

    def __call__(self, data: bytes) -> dict[str, Any]:
        return self.deserialize(data)


# Anything that turns a stored body into an attribute map
AttributeDecoder = Union[AttributeDeserializer, Callable[[bytes], Mapping[str, Any]]]
AttributeEncoder = Union[AttributeSerializer, Callable[[Mapping[str, Any]], bytes]]


class MapSerializer(AttributeSerializer):
    """Writes attributes as [2B len][key][2B len][value] pairs."""

    def serialize(self, attrs: Mapping[str, Any]) -> bytes:
        parts = []
        for key, value in attrs.items():
            if value is None:
                continue
            if not isinstance(key, str):
                raise EncodeError(f"Attribute keys must be strings, got {type(key).__name__}")
            parts.append(pack_short_string(key))
            parts.append(pack_short_string(value if isinstance(value, str) else str(value)))
        return b"".join(parts)


class MapDeserializer(AttributeDeserializer):
    def deserialize(self, data: bytes) -> dict[str, Any]:
        attrs: dict[str, Any] = {}
        reader = ByteReader(data)
        while reader.remaining:
            key = reader.read_short_string()
            attrs[key] = reader.read_short_string()
        return attrs


class JsonSerializer(AttributeSerializer):
    def __init__(self, encoder: Optional[Callable] = None):
        self._encoder = encoder

    def serialize(self, attrs: Mapping[str, Any]) -> bytes:
        return json.dumps(dict(attrs), default=self._encoder).encode('utf-8')


class JsonDeserializer(AttributeDeserializer):
    def __init__(self, object_hook: Optional[Callable] = None):
        self._object_hook = object_hook

    def deserialize(self, data: bytes) -> dict[str, Any]:
        if not data:
            return {}
        attrs = json.loads(data.decode('utf-8'), object_hook=self._object_hook)
        if not isinstance(attrs, dict):
            raise ValueError(f"Expected a JSON object, got {type(attrs).__name__}")
        return attrs


class SerdeRegistry:
    _serializers = {}
    _deserializers = {}

    @classmethod
    def register(cls, name: str, serializer: AttributeSerializer, deserializer: AttributeDeserializer):
        cls._serializers[name] = serializer
        cls._deserializers[name] = deserializer

    @classmethod
    def get(cls, name: str) -> tuple[Optional[AttributeSerializer], Optional[AttributeDeserializer]]:
        return cls._serializers.get(name), cls._deserializers.get(name)


class Serdes:
    @staticmethod
    def map():
        return MapSerializer(), MapDeserializer()

    @staticmethod
    def json(encoder=None, object_hook=None):
        return JsonSerializer(encoder), JsonDeserializer(object_hook)


# Register default SerDes
s_map, d_map = Serdes.map()
SerdeRegistry.register("map", s_map, d_map)
s_json, d_json = Serdes.json()
SerdeRegistry.register("json", s_json, d_json)

DEFAULT_SERIALIZER = s_map
DEFAULT_DESERIALIZER = d_map
