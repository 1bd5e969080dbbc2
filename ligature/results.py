"""
Ligature results: what binding and parsing report back.

- Result: success flag + human-readable response (+ optional FaultCode).
- SettingResult: a Result tied to the setting and raw text it came from.
- HelpResult: the response of a help command (always successful).
- ParseResult: every outcome of one Schema.parse() call, grouped by kind.
"""
from rich.console import Group
from rich.text import Text

from .utils import Unset, coalesce, mirror


class Result:
    success = mirror("success")
    response = mirror("response")
    code = mirror("code")

    def __init__(self, success, response, /, code=Unset):
        if not isinstance(response, str):
            raise TypeError("result response must be a string")
        self._success = bool(success)
        self._response = response
        self._code = coalesce(code)

    def __str__(self):
        return self._response

    def __repr__(self):
        return f"{type(self).__name__}(success={self._success!r}, response={self._response!r})"


class SettingResult(Result):
    """
    outcome of binding one setting.

    - setting: the Setting that produced it.
    - text: the raw argument text (None when the setting received none).
    - value: the converted value on success, None otherwise.
    """
    setting = mirror("setting")
    text = mirror("text")
    value = mirror("value")

    def __init__(self, setting, success, response, /, text=None, value=Unset, code=Unset):
        super().__init__(success, response, code=code)
        self._setting = setting
        self._text = text
        self._value = coalesce(value)

    def __str__(self):
        return f"{self._response} ({self._setting.name}, {"NULL" if self._text is None else self._text})"


class HelpResult(Result):
    def __init__(self, response, /):
        super().__init__(True, response)


class ParseResult:
    """
    every outcome of one parse, in input order within each group.

    - unused: texts no setting claimed.
    - successes / errors: SettingResult objects.
    - help: HelpResult objects.
    - success: True when nothing was unused and nothing failed.
    """
    unused = mirror("unused")
    successes = mirror("successes")
    errors = mirror("errors")
    help = mirror("help")

    def __init__(self, unused=(), successes=(), errors=(), help=(), /):
        self._unused = tuple(unused)
        self._successes = tuple(successes)
        self._errors = tuple(errors)
        self._help = tuple(help)

    @property
    def success(self):
        return not self._unused and not self._errors

    def sections(self):
        """
        yield (title, lines) for every non-empty group.
        """
        if self._help:
            yield "Help", [str(result) for result in self._help]
        if self._successes:
            yield "Successes", [str(result) for result in self._successes]
        if self._errors:
            yield "Errors", [str(result) for result in self._errors]
        if self._unused:
            yield "The following parts were extra; was an argument mistyped?", [f"'{part}'" for part in self._unused]

    def __str__(self):
        return "\n\n".join(f"{title}:\n\t" + "\n\t".join(lines) for title, lines in self.sections()) + "\n"

    def __repr__(self):
        return (
            f"{type(self).__name__}(unused={len(self._unused)}, successes={len(self._successes)}, "
            f"errors={len(self._errors)}, help={len(self._help)})"
        )

    def __rich__(self):
        styles = {"Help": "bold #00E5FF", "Successes": "bold #9CE19C", "Errors": "bold #FF4DA6"}
        renders = []
        for title, lines in self.sections():
            renders.append(Text(title, styles.get(title, "bold #FFB400")))
            renders.extend(Text("  " + line) for line in lines)
        return Group(*renders)


__all__ = (
    "Result",
    "SettingResult",
    "HelpResult",
    "ParseResult",
)
