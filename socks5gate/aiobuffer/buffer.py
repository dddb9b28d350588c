import abc
import enum
from collections import deque
from struct import Struct
from typing import Any, Callable, Dict, Mapping, Optional, Type, Union

from ..transport import Transport

_parent_stack: deque["BinarySchema"] = deque()


class Unit(abc.ABC):
    """Unit is the base class of all units. \
    If you can build your own unit class, you must inherit from it"""

    @abc.abstractmethod
    async def get_value(self, buffer: "TransportBuffer"):
        "get object you want from the transport"

    @abc.abstractmethod
    def __call__(self, obj) -> bytes:
        "convert user-given object to bytes"


class BinarySchemaMetaclass(type):
    def __new__(mcls, name, bases, namespace, **kwargs):
        fields: Dict[str, FieldType] = {}
        for key, member in namespace.items():
            if isinstance(member, (Unit, BinarySchemaMetaclass)):
                fields[key] = member
                namespace[key] = MemberDescriptor(key, member)
        namespace["_fields"] = fields
        return super().__new__(mcls, name, bases, namespace)

    def __str__(cls):
        s = ", ".join(f"{name}={field}" for name, field in cls._fields.items())
        return f"{cls.__name__}({s})"

    async def get_value(cls, buffer):
        "decode one `BinarySchema` object, field by field"
        mapping: Dict[str, Any] = {}
        buffer._mapping_stack.append(mapping)
        try:
            for name, field in cls._fields.items():
                mapping[name] = await field.get_value(buffer)
        finally:
            buffer._mapping_stack.pop()
        return cls(*mapping.values())


class BinarySchema(metaclass=BinarySchemaMetaclass):
    """Declare a wire message as a class whose attributes are units.

    Positional constructor arguments follow field order; pass ``...`` for a
    `MustEqual` field to use its constant."""

    def __init__(self, *args):
        if len(args) != len(self.__class__._fields):
            raise ValueError(
                f"need {len(self.__class__._fields)} args, got {len(args)}"
            )
        self.values = {}
        self.bins = {}
        _parent_stack.append(self)
        try:
            for arg, name in zip(args, self.__class__._fields):
                setattr(self, name, arg)
        finally:
            _parent_stack.pop()

    def member_get(self, name):
        return self.values[name]

    def member_set(self, name, value, binary):
        self.bins[name] = binary
        self.values[name] = value

    @property
    def binary(self) -> bytes:
        return b"".join(self.bins.values())

    def __str__(self):
        s = ", ".join(
            f"{name}={getattr(self, name)!r}" for name in self.__class__._fields
        )
        return f"{self.__class__.__name__}({s})"

    def __repr__(self):
        return f"<{self}>"

    def __eq__(self, other) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return all(
            getattr(self, name) == getattr(other, name)
            for name in self.__class__._fields
        )


FieldType = Union[Type[BinarySchema], Unit]


class MemberDescriptor:
    __slots__ = ("key", "member")

    def __init__(self, key: str, member: FieldType):
        self.key = key
        self.member = member

    def __get__(self, obj: Optional[BinarySchema], owner):
        if obj is None:
            return self.member
        return obj.member_get(self.key)

    def __set__(self, obj: BinarySchema, value):
        if isinstance(self.member, BinarySchemaMetaclass):
            binary = value.binary
        else:
            binary = self.member(value)
        if value is ...:
            value = self.member.value
        obj.member_set(self.key, value, binary)


class TransportBuffer:
    """Feeds units from a `Transport`.

    Every pull is one ``receive`` call for exactly the bytes the unit needs,
    so a short read surfaces at the field that could not be filled."""

    def __init__(self, transport: Transport):
        self.transport = transport
        self._mapping_stack: deque = deque()

    def __repr__(self):
        return f"TransportBuffer<{self.transport!r}>"

    async def pull(self, obj: Union[int, Struct, str, Unit, Type[BinarySchema]]):
        if isinstance(obj, int):
            if obj < 0:
                raise ValueError(f"nbytes must >= 0, but got {obj}")
            if obj == 0:
                return b""
            return await self.transport.receive(obj)
        elif isinstance(obj, str):
            obj = Struct(obj)
        elif isinstance(obj, (Unit, BinarySchemaMetaclass)):
            return await obj.get_value(self)
        if isinstance(obj, Struct):
            return obj.unpack(await self.transport.receive(obj.size))
        raise TypeError(f"unknown object type: {type(obj)}")


class SingleStructUnit(Unit):
    def __init__(self, format_: str):
        self._struct = Struct(format_)

    def __str__(self):
        return f"{self.__class__.__name__}({self._struct.format})"

    async def get_value(self, buffer):
        return (await buffer.pull(self._struct))[0]

    def __call__(self, obj) -> bytes:
        return self._struct.pack(obj)


u8 = SingleStructUnit("B")
u16be = SingleStructUnit(">H")


class Bytes(Unit):
    def __init__(self, length: int):
        self.length = length

    def __str__(self):
        return f"{self.__class__.__name__}({self.length})"

    async def get_value(self, buffer):
        return await buffer.pull(self.length)

    def __call__(self, obj) -> bytes:
        if len(obj) != self.length:
            raise ValueError(f"expect {self.length} bytes, got {len(obj)}")
        return bytes(obj)


class MustEqual(Unit):
    def __init__(self, unit: Unit, value, error: Callable = None):
        self.unit = unit
        self.value = value
        self.error = error

    def __str__(self):
        return f"{self.__class__.__name__}({self.unit}, {self.value})"

    def _fail(self, obj):
        if self.error is not None:
            return self.error(self.value, obj)
        return ValueError(f"expect {self.value}, got {obj}")

    async def get_value(self, buffer):
        result = await self.unit.get_value(buffer)
        if self.value != result:
            raise self._fail(result)
        return result

    def __call__(self, obj) -> bytes:
        if obj is not ... and self.value != obj:
            raise self._fail(obj)
        return self.unit(self.value)


class LengthPrefixedBytes(Unit):
    def __init__(self, length_unit: SingleStructUnit):
        self.length_unit = length_unit

    def __str__(self):
        return f"{self.__class__.__name__}({self.length_unit})"

    async def get_value(self, buffer):
        length = await self.length_unit.get_value(buffer)
        return await buffer.pull(length)

    def __call__(self, obj: bytes) -> bytes:
        try:
            prefix = self.length_unit(len(obj))
        except Exception as e:
            raise ValueError(f"{len(obj)} bytes do not fit {self.length_unit}") from e
        return prefix + bytes(obj)


class Switch(Unit):
    """Pick the unit by the value of an earlier field named ``ref``;
    ``error`` is raised with that value when no case matches."""

    def __init__(self, ref: str, cases: Mapping[Any, FieldType], error=KeyError):
        self.ref = ref
        self.cases = cases
        self.error = error

    def __str__(self):
        return f"{self.__class__.__name__}({self.ref}, {self.cases})"

    def _case(self, key):
        try:
            return self.cases[key]
        except KeyError:
            raise self.error(key) from None

    async def get_value(self, buffer):
        mapping = buffer._mapping_stack[-1]
        return await self._case(mapping[self.ref]).get_value(buffer)

    def __call__(self, obj) -> bytes:
        parent = _parent_stack[-1]
        real_field = self._case(getattr(parent, self.ref))
        return real_field(obj) if isinstance(real_field, Unit) else obj.binary


class SizedIntEnum(Unit):
    def __init__(self, size_unit: SingleStructUnit, enum_class: Type[enum.IntEnum]):
        self.size_unit = size_unit
        self.enum_class = enum_class

    def __str__(self):
        return f"{self.__class__.__name__}({self.size_unit}, {self.enum_class})"

    async def get_value(self, buffer):
        v = await self.size_unit.get_value(buffer)
        return self.enum_class(v)

    def __call__(self, obj: enum.IntEnum) -> bytes:
        return self.size_unit(self.enum_class(obj).value)


class Convert(Unit):
    def __init__(self, unit: Unit, *, encode: Callable, decode: Callable):
        self.unit = unit
        self.encode = encode
        self.decode = decode

    def __str__(self):
        return (
            f"{self.__class__.__name__}"
            f"({self.unit}, encode={self.encode}, decode={self.decode})"
        )

    async def get_value(self, buffer):
        v = await self.unit.get_value(buffer)
        return self.decode(v)

    def __call__(self, obj: Any) -> bytes:
        return self.unit(self.encode(obj))
