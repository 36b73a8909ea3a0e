from typing import Any, Callable

# -------- Aliases (clarify intent) --------
Discriminant = str  # e.g. "CLICK", "HOVER"
Subscriber = Callable[[Any], None]
ErrorHook = Callable[[str, BaseException], None]
Issue = dict[str, str]  # {"path", "message", "error_type"}
