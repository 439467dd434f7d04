"User-visible messages: error, success or notice, with parameters."

import markupsafe

ERROR = "error"
SUCCESS = "success"
NOTICE = "notice"


class Message:
    """A message for the user. The text may contain '%s' placeholders,
    which are filled in by the parameters added to the message.
    """

    def __init__(self, text, level=NOTICE, params=None):
        self.text = text
        self.level = level
        self.params = list(params or [])

    @classmethod
    def error(cls, text):
        return cls(text, level=ERROR)

    @classmethod
    def success(cls, text):
        return cls(text, level=SUCCESS)

    @classmethod
    def notice(cls, text):
        return cls(text, level=NOTICE)

    def add_param(self, param):
        self.params.append(param)

    @property
    def is_error(self):
        return self.level == ERROR

    @property
    def category(self):
        "The flash category, which is also the CSS alert suffix."
        return "error" if self.is_error else "message"

    def __str__(self):
        if self.params:
            return self.text % tuple(str(p) for p in self.params)
        return self.text

    def __repr__(self):
        return f"Message({str(self)!r}, level={self.level!r})"

    def __eq__(self, other):
        if not isinstance(other, Message):
            return NotImplemented
        return self.level == other.level and str(self) == str(other)

    def __html__(self):
        return str(markupsafe.escape(str(self)))
