# pkgregistry/core/search.py
import re

from .errors import ValidationError

class UnsafeRegexError(ValidationError): ...

# four or more chained wildcard repetitions, e.g. ".*.*.*.*" or ".+.*.+.*"
_CHAINED_WILDCARDS = re.compile(r"(?:\.[*+][?+]?){4,}")
# a quantified group that is itself quantified, e.g. "(a+)+" or "(\w*)*"
_NESTED_QUANTIFIER = re.compile(r"\((?:[^()\\]|\\.)*[*+}]\)[*+{]")

def safe_regex(pattern: str | None, flags=re.IGNORECASE, max_len=100):
    if not pattern:
        raise UnsafeRegexError("regex must not be empty")
    if len(pattern) > max_len:
        raise UnsafeRegexError("regex too long")
    # basic sanity checks against catastrophic backtracking
    if _CHAINED_WILDCARDS.search(pattern) or _NESTED_QUANTIFIER.search(pattern):
        raise UnsafeRegexError("regex too complex")
    if pattern.count("(") > 32 or any(x in pattern for x in ["(?R", "(?P>", "(?<=.*)"]):
        raise UnsafeRegexError("regex too complex")
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise UnsafeRegexError(f"invalid regex: {e}")
