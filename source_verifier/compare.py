"""
Expected vs verified source comparison.

Contents must be identical: no whitespace or line ending normalisation.
"""

from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Optional

from .allowlist import is_excepted
from .console import GREEN, GREY, RED, paint
from .fetcher import SourceBundle

MISMATCH = "Source mismatch"
SINGLE_FILE = "Single file source"

# Character matching inside a changed block is skipped above this size
# (len(removed) * len(added)); the whole block is shown removed then added.
CHAR_DIFF_LIMIT = 1_000_000


@dataclass(frozen=True)
class VerificationResult:
    contract_name: str
    address: str
    passed: bool
    path: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.contract_name,
            "address": self.address,
            "verified": self.passed,
            "path": self.path,
            "error": self.reason or None,
        }


def compare(contract_name: str, network: str, expected: dict[str, str],
            bundle: SourceBundle) -> VerificationResult:
    """Stops at the first mismatching path; excepted paths are skipped."""
    if not bundle.is_multi_file:
        # Every target contract is multi-file, a flat source is never expected.
        return VerificationResult(contract_name, bundle.address, False,
                                  actual=bundle.raw, reason=SINGLE_FILE)

    for path, actual in bundle.sources.items():
        if is_excepted(network, contract_name, path):
            continue
        expected_source = expected.get(path)
        if expected_source != actual:
            return VerificationResult(contract_name, bundle.address, False, path=path,
                                      expected=expected_source, actual=actual,
                                      reason=MISMATCH)
    return VerificationResult(contract_name, bundle.address, True)


def _char_diff(removed: str, added: str, color: bool) -> list[str]:
    if len(removed) * len(added) > CHAR_DIFF_LIMIT:
        return _changed(removed, added, color)
    parts = []
    matcher = SequenceMatcher(None, removed, added, autojunk=False)
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            parts.append(paint(removed[i1:i2], GREY, color))
        else:
            parts.extend(_changed(removed[i1:i2], added[j1:j2], color))
    return parts


def _changed(removed: str, added: str, color: bool) -> list[str]:
    parts = []
    if removed:
        parts.append(paint(removed, RED, True) if color else f"[-{removed}-]")
    if added:
        parts.append(paint(added, GREEN, True) if color else f"{{+{added}+}}")
    return parts


def render_diff(expected: str, actual: str, color: bool = True) -> str:
    """Character level diff: removed text red, added text green.

    Lines are matched first and characters only within changed lines, so a
    one identifier change in a large file stays cheap.
    Without colour, removals are shown as [-...-] and additions as {+...+}.
    """
    old = expected.splitlines(keepends=True)
    new = actual.splitlines(keepends=True)
    parts = []
    matcher = SequenceMatcher(None, old, new, autojunk=False)
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            parts.append(paint("".join(old[i1:i2]), GREY, color))
        else:
            parts.extend(_char_diff("".join(old[i1:i2]), "".join(new[j1:j2]), color))
    return "".join(parts)
