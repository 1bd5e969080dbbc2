r"""
Ligature settings: named, typed targets that argument text is bound to.

Overview
- Setting[_T]: converts one argument text and writes it to a source object.
- CollectionSetting[_T]: modifies a list or set held by the source with an
  optional leading action keyword (Toggle, Add, AddIfMissing, Remove).
- HelpCommand: the help/h setting of a schema; answers with a HelpResult.

Accessors
- By default a setting reads and writes the attribute named after it
  (attribute= overrides the name). getter(source) / setter(source, value)
  replace attribute access entirely, e.g. for mappings or computed targets.

Binding (Setting.bind)
- the text "default" (any case) binds the default value (None if there is none).
- string settings turn \" back into " before conversion (with the quote and
  escape characters of their schema); settings whose value is itself an
  argument string (schema types) receive the text untouched.
- conversion uses parser= when given, otherwise the converter registered for type=.
- failures come back as error SettingResults carrying a FaultCode; bind never
  raises for bad input, but lets NestingDepthExceededError through.

Metadata (sanitized on construction)
- names: one or more non-blank strings without whitespace; aliases are unique
  ignoring case. The first one is the main name.
- flag: boolean presence switch; requires type=bool.
- optional: explicitly optional, or implied by a default.
- nullable: whether None may be bound.
- group: settings sharing a group are mutually exclusive for needed() purposes.

Quick example:
    >>> from ligature import Setting
    >>> verbose = Setting("Verbose", "v", type=bool, flag=True, default=False)
    >>> name = Setting("Name", descr="Display name.")
"""
import builtins
import logging
import re
from collections.abc import MutableSequence, MutableSet
from enum import Enum, auto

from .faults import FaultCode
from .results import HelpResult, SettingResult
from .utils import Unset, coalesce, iequals, mirror
from .values import converters, unescape

logger = logging.getLogger(__name__)


def _sanitize_names(cls, names, /):
    """
    validate setting names: strings, non-blank, no whitespace, unique ignoring case.
    """
    if not names:
        raise TypeError(f"{cls.__name__} must specify at least one name")

    sanitized = []
    seen = set()
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__name__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__name__} names cannot be empty-strings")
        elif re.search(r"\s", name):
            raise ValueError(f"{cls.__name__} names cannot contain whitespace")
        elif name.casefold() in seen:
            raise ValueError(f"{cls.__name__} names cannot contain duplicates")
        seen.add(name.casefold())
        sanitized.append(name)
    return tuple(sanitized)


def _sanitize_callable(cls, name, object, /):
    if object is not Unset and not callable(object):
        raise TypeError(f"{cls.__name__} {name!r} must be callable")
    return object


def _sanitize_text(cls, name, object, /):
    if not isinstance(object, str | Unset):
        raise TypeError(f"{cls.__name__} {name!r} must be a string")
    elif isinstance(object, str) and not (object := object.strip()):
        raise ValueError(f"{cls.__name__} {name!r} cannot be empty")
    return object


class Setting[_T]:
    """
    Named, typed, single-value setting.

    Properties
    - names / name: aliases and main name.
    - type, default, descr, group: metadata (default is Unset when there is none).
    - flag, optional, nullable: binding switches.
    - schema: the owning Schema, or None until added to one.
    """
    names = mirror("names")
    type = mirror("type")
    attribute = mirror("attribute")
    default = mirror("default")
    descr = mirror("descr")
    flag = mirror("flag")
    nullable = mirror("nullable")
    group = mirror("group")
    schema = mirror("schema")

    def __init__(
            self,
            *names,
            type=str,
            parser=Unset,
            attribute=Unset,
            default=Unset,
            descr=Unset,
            validate=Unset,
            flag=False,
            optional=False,
            nullable=True,
            group=Unset,
            unescape=Unset,
            getter=Unset,
            setter=Unset,
    ):
        """
        Parameters
        - names: main name followed by aliases.
        - type: target type, used to find a converter and in messages.
        - parser: Unset | callable(text) -> value, overrides the registered converter.
        - attribute: Unset | str, attribute written on the source (main name by default).
        - default: Unset | Any, value for "default" and reset(); implies optional.
        - descr: Unset | str, short description for help.
        - validate: Unset | callable(value) -> bool, rejects converted values.
        - flag: bool, presence switch (type must be bool).
        - optional: bool, never reported by Schema.needed().
        - nullable: bool, whether None may be bound.
        - group: Unset | str, mutual-exclusion group.
        - unescape: Unset | bool, unescape quotes before conversion (type is str by default).
        - getter / setter: Unset | callable, explicit accessors.
        """
        cls = builtins.type(self)
        self._names = _sanitize_names(cls, names)
        if not callable(type):
            raise TypeError(f"{cls.__name__} 'type' must be callable")
        self._type = type
        self._parser = _sanitize_callable(cls, "parser", parser)
        self._attribute = _sanitize_text(cls, "attribute", attribute)
        if self._attribute is not Unset and not self._attribute.isidentifier():
            raise ValueError(f"{cls.__name__} 'attribute' must be a valid identifier")
        self._default = default
        self._descr = coalesce(_sanitize_text(cls, "descr", descr))
        self._validate = _sanitize_callable(cls, "validate", validate)
        self._flag = bool(flag)
        if self._flag and type is not bool:
            raise TypeError(f"{cls.__name__} must have type=bool to be a flag")
        self._optional = bool(optional)
        self._nullable = bool(nullable)
        self._group = coalesce(_sanitize_text(cls, "group", group))
        if not isinstance(unescape, bool | Unset):
            raise TypeError(f"{cls.__name__} 'unescape' must be a boolean")
        self._unescape = coalesce(unescape, type is str)
        self._getter = _sanitize_callable(cls, "getter", getter)
        self._setter = _sanitize_callable(cls, "setter", setter)
        self._schema = None

    @property
    def name(self):
        return self._names[0]

    @property
    def optional(self):
        return self._optional or self._default is not Unset

    @property
    def information(self):
        """
        help text: "Name: descr", the default, acceptable enum values and aliases.
        """
        lines = [f"{self.name}: {self._descr or 'No description provided.'}"]
        if self._default is not Unset:
            lines[0] += f" Default value is {"NULL" if self._default is None else self._default}."
        if isinstance(self._type, builtins.type) and issubclass(self._type, Enum):
            lines.append(f"Acceptable values: {', '.join(self._type.__members__)}")
        if len(self._names) > 1:
            lines.append(f"Aliases: {', '.join(self._names[1:])}")
        return "\n".join(lines)

    def _adopt(self, schema, /):
        """
        bind this setting to its owning schema (a setting belongs to one schema).
        """
        if schema is not None and self._schema is not None and self._schema is not schema:
            raise ValueError(f"setting {self.name!r} already belongs to another schema")
        self._schema = schema

    def convert(self, text, /):
        """
        convert text to a value (unescaping first when enabled).

        Raises whatever the converter raises (ValueError, TypeError, ArithmeticError).
        """
        if self._unescape:
            if self._schema is None:
                text = unescape(text)
            else:
                text = unescape(text, self._schema.quotes, self._schema.escape)
        parser = self._parser if self._parser is not Unset else converters.retrieve(self._type)
        return parser(text)

    def accepts(self, value, /):
        if value is None:
            return self._nullable
        return self._validate is Unset or bool(self._validate(value))

    def get(self, source, /):
        if self._getter is not Unset:
            return self._getter(source)
        return getattr(source, coalesce(self._attribute, self.name))

    def _write(self, source, value, /):
        if self._setter is not Unset:
            self._setter(source, value)
        else:
            setattr(source, coalesce(self._attribute, self.name), value)

    def set(self, source, value, /):
        """
        write value after validation.

        Raises
        - ValueError: value is None on a non-nullable setting, or validation rejects it.
        """
        if not self.accepts(value):
            raise ValueError(f"{value!r} is not a valid value for {self.name}")
        self._write(source, value)

    def reset(self, source, /):
        """
        write the default (None when there is none), bypassing validation.
        """
        self._write(source, coalesce(self._default))

    def _error(self, text, response, code, /):
        logger.debug("binding %s failed with %s: %s", self.name, code.name, response)
        return SettingResult(self, False, response, text=text, code=code)

    def bind(self, source, text, /):
        """
        convert, validate and write text; return a SettingResult.
        """
        if text is None:
            if not self._flag:
                return self._error(text, f"{self.name} requires a value.", FaultCode.MISSING_VALUE)
            text = "true"

        if iequals(text, "default"):
            value = coalesce(self._default)
        else:
            try:
                value = self.convert(text)
            except (ValueError, TypeError, ArithmeticError) as exception:
                logger.debug("converting %r for %s raised %r", text, self.name, exception)
                return self._error(
                    text, f"Unable to convert '{text}' to type {getattr(self._type, '__name__', self._type)}.",
                    FaultCode.UNCASTABLE_VALUE
                )

        if value is None and not self._nullable:
            return self._error(text, f"{self.name} cannot be set to 'NULL'.", FaultCode.NULL_VALUE)
        if not self.accepts(value):
            return self._error(text, f"'{text}' is not a valid value for {self.name}.", FaultCode.INVALID_VALUE)

        try:
            self._write(source, value)
        except (AttributeError, TypeError) as exception:
            return self._error(text, f"Unable to write {self.name}: {exception}.", FaultCode.UNWRITABLE_TARGET)

        return SettingResult(
            self, True, f"Successfully set {self.name} to '{"NULL" if value is None else value}'.", text=text, value=value
        )

    def __str__(self):
        return f"{self.name} ({getattr(self._type, '__name__', self._type)})"

    def __repr__(self):
        return f"{builtins.type(self).__name__}({', '.join(map(repr, self._names))}, type={self._type!r})"


class Action(Enum):
    """
    collection modification actions, written before the value ("Add Bob").
    """
    TOGGLE = auto()
    ADD = auto()
    ADD_IF_MISSING = auto()
    REMOVE = auto()

    @classmethod
    def parse(cls, word, /):
        """
        return the action named by word (ignoring case and underscores), or None.
        """
        for member in cls:
            if iequals(member.name.replace("_", ""), word):
                return member
        return None


class CollectionSetting[_T](Setting[_T]):
    """
    Setting targeting a mutable list or set held by the source.

    - text "Add x", "AddIfMissing x", "Remove x", "Toggle x" or just "x" (Toggle).
    - key: Unset | callable(item) -> comparable, used for item equality (e.g. str.casefold).
    - always optional; reset() clears the collection; set() replaces its content.
    """

    def __init__(
            self,
            *names,
            type=str,
            key=Unset,
            parser=Unset,
            attribute=Unset,
            descr=Unset,
            validate=Unset,
            nullable=False,
            group=Unset,
            unescape=Unset,
            getter=Unset,
    ):
        super().__init__(
            *names,
            type=type,
            parser=parser,
            attribute=attribute,
            descr=descr,
            validate=validate,
            optional=True,
            nullable=nullable,
            group=group,
            unescape=unescape,
            getter=getter,
        )
        self._key = _sanitize_callable(builtins.type(self), "key", key)

    def _normalize(self, item, /):
        return item if self._key is Unset else self._key(item)

    def _discard(self, collection, value, /):
        """
        remove every item equal to value; return how many were removed.
        """
        matches = [item for item in collection if self._normalize(item) == self._normalize(value)]
        for item in matches:
            collection.remove(item)
        return len(matches)

    def _contains(self, collection, value, /):
        return any(self._normalize(item) == self._normalize(value) for item in collection)

    @staticmethod
    def _insert(collection, value, /):
        if isinstance(collection, MutableSet):
            collection.add(value)
        else:
            collection.append(value)

    def set(self, source, values, /):
        collection = self.get(source)
        values = list(values)
        for value in values:
            if not self.accepts(value):
                raise ValueError(f"{value!r} is not a valid value for {self.name}")
        collection.clear()
        for value in values:
            self._insert(collection, value)

    def reset(self, source, /):
        self.get(source).clear()

    def bind(self, source, text, /):
        if text is None:
            return self._error(text, f"{self.name} requires a value.", FaultCode.MISSING_VALUE)

        words = text.split(maxsplit=1)
        if (action := Action.parse(words[0])) is None:
            action, argument = Action.TOGGLE, text
        elif len(words) == 1:
            return self._error(text, "Cannot provide only an action.", FaultCode.ACTION_ONLY)
        else:
            argument = words[1]

        try:
            value = self.convert(argument)
        except (ValueError, TypeError, ArithmeticError):
            return self._error(
                text, f"Unable to convert '{argument}' to type {getattr(self._type, '__name__', self._type)}.",
                FaultCode.UNCASTABLE_VALUE
            )
        if value is None and not self._nullable:
            return self._error(text, f"{self.name} cannot contain 'NULL'.", FaultCode.NULL_VALUE)
        if not self.accepts(value):
            return self._error(text, f"'{argument}' is not a valid value for {self.name}.", FaultCode.INVALID_VALUE)

        try:
            collection = self.get(source)
        except AttributeError as exception:
            return self._error(text, f"Unable to read {self.name}: {exception}.", FaultCode.UNWRITABLE_TARGET)
        if not isinstance(collection, MutableSequence | MutableSet):
            return self._error(text, f"{self.name} must be initialized to a list or a set.", FaultCode.UNWRITABLE_TARGET)

        match action:
            case Action.TOGGLE:
                if self._discard(collection, value):
                    past, modified = "removed", True
                else:
                    self._insert(collection, value)
                    past, modified = "added", True
            case Action.ADD:
                self._insert(collection, value)
                past, modified = "added", True
            case Action.ADD_IF_MISSING:
                past, modified = "added", not self._contains(collection, value)
                if modified:
                    self._insert(collection, value)
            case Action.REMOVE:
                past, modified = "removed", bool(self._discard(collection, value))

        if not modified:
            return self._error(text, f"Already {past}.", FaultCode.UNMODIFIED_COLLECTION)
        return SettingResult(self, True, f"Successfully {past}.", text=text, value=value)


class HelpCommand(Setting[str]):
    """
    help/h: binds nothing, answers with the owning schema's information.

    "-help" lists every setting; "-help Name" describes one.
    """

    def __init__(self, schema, /):
        super().__init__("help", "h", descr="Gives help information.", optional=True)
        self._adopt(schema)

    def bind(self, source, text, /):
        return HelpResult(self._schema.information(Unset if text is None else text))

    def reset(self, source, /):
        pass


__all__ = (
    "Setting",
    "CollectionSetting",
    "Action",
    "HelpCommand",
)
