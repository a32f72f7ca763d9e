# filename: mhuffman_service.py

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from mhuffman_core import (
    DIGITS,
    CodeTable,
    Dummy,
    HuffmanLogic,
    Internal,
    Leaf,
    validate_arity,
)
from mhuffman_errors import ConfigurationError, DecodeError, InternalConsistencyError

logger = logging.getLogger(__name__)

SPACE_PLACEHOLDER = "␣"
EXPORT_FORMAT_VERSION = 1


@dataclass(frozen=True)
class CodecSettings:
    arity: int = 3
    bits_per_symbol: int = 8
    min_arity: int = 2
    max_arity: int = 5

    def validate(self):
        validate_arity(self.arity)
        if not self.min_arity <= self.arity <= self.max_arity:
            raise ConfigurationError(
                f"branching factor must be between {self.min_arity} and "
                f"{self.max_arity}, got {self.arity}"
            )
        if (isinstance(self.bits_per_symbol, bool)
                or not isinstance(self.bits_per_symbol, int)
                or self.bits_per_symbol < 1):
            raise ConfigurationError(
                f"bits per symbol must be a positive integer, got {self.bits_per_symbol!r}"
            )
        return self


class CompressionStats(NamedTuple):
    original_bits: int
    encoded_digits: int
    ratio: float


class EncodeResult(NamedTuple):
    codes: CodeTable
    payload: str
    stats: CompressionStats


class Analysis(NamedTuple):
    frequencies: dict
    tree: Any
    codes: CodeTable


class SymbolRow(NamedTuple):
    symbol: Any
    label: str
    frequency: int
    code: str


def display_symbol(symbol) -> str:
    if symbol == " ":
        return SPACE_PLACEHOLDER
    return str(symbol)


def statistics(original_count, bits_per_symbol, encoded_digits) -> CompressionStats:
    original_bits = original_count * bits_per_symbol
    if original_bits == 0:
        return CompressionStats(0, encoded_digits, 0.0)
    ratio = round((original_bits - encoded_digits) / original_bits * 100, 2)
    return CompressionStats(original_bits, encoded_digits, ratio)


class HuffmanService:
    def __init__(self, settings: Optional[CodecSettings] = None):
        self.settings = (settings or CodecSettings()).validate()
        self.logic = HuffmanLogic()

    def analyze(self, data: Sequence, m: Optional[int] = None) -> Analysis:
        m = self.settings.arity if m is None else validate_arity(m)
        frequencies = self.logic.count_frequencies(data)
        tree = self.logic.build_tree(frequencies, m)
        codes = self.logic.generate_codes(tree, m)
        return Analysis(frequencies, tree, codes)

    def encode(self, data: Sequence, m: Optional[int] = None) -> EncodeResult:
        codes = self.analyze(data, m).codes
        parts = []
        for symbol in data:
            try:
                parts.append(codes[symbol])
            except KeyError:
                raise InternalConsistencyError(
                    f"symbol {symbol!r} has no code in the table"
                ) from None
        payload = "".join(parts)
        stats = self.statistics(len(data), encoded_digits=len(payload))
        logger.debug("encoded %d symbols into %d digits (m=%d)",
                     len(data), len(payload), codes.arity)
        return EncodeResult(codes, payload, stats)

    def statistics(self, original_count, bits_per_symbol=None, encoded_digits=0):
        if bits_per_symbol is None:
            bits_per_symbol = self.settings.bits_per_symbol
        return statistics(original_count, bits_per_symbol, encoded_digits)

    def symbol_report(self, data: Sequence, m: Optional[int] = None) -> List[SymbolRow]:
        return self.report_rows(self.analyze(data, m))

    def report_rows(self, analysis: Analysis) -> List[SymbolRow]:
        # Counter keeps first-occurrence order
        return [
            SymbolRow(symbol, display_symbol(symbol), count, analysis.codes[symbol])
            for symbol, count in analysis.frequencies.items()
        ]

    def decode(self, payload: str, source, m: Optional[int] = None) -> List[Any]:
        """Decode a digit string with either a CodeTable or a tree root.

        Decoding stops at the first bad digit; ``DecodeError.offset`` is the
        index of that digit, or for a truncated stream the index where the
        unfinished code started.
        """
        if isinstance(source, CodeTable):
            m = source.arity if m is None else m
            return _decode_with_trie(payload, build_decode_trie(source), validate_arity(m))
        if isinstance(source, (Leaf, Dummy, Internal)):
            m = _tree_arity(source) if m is None else m
            return _decode_with_tree(payload, source, validate_arity(m))
        raise TypeError(f"cannot decode with {type(source).__name__}")

    def decode_text(self, payload: str, source, m: Optional[int] = None) -> str:
        return "".join(self.decode(payload, source, m))

    def export(self, result: EncodeResult, filename: str = "") -> "ExportRecord":
        return ExportRecord(result.codes.arity, result.codes.pairs(), result.payload, filename)


def build_decode_trie(codes: CodeTable) -> dict:
    root = {}
    for symbol, code in codes.items():
        if not code:
            raise ConfigurationError(f"empty code for {symbol!r}")
        cur = root
        for ch in code:
            digit = _digit_value(ch)
            if digit is None or digit >= codes.arity:
                raise ConfigurationError(f"code {code!r} is not a base-{codes.arity} string")
            if "sym" in cur:
                raise ConfigurationError("code table is not prefix-free")
            cur = cur.setdefault(digit, {})
        if "sym" in cur or len(cur) > 0:
            raise ConfigurationError("code table is not prefix-free")
        cur["sym"] = symbol
    return root


def _digit_value(ch) -> Optional[int]:
    index = DIGITS.find(ch)
    return None if index < 0 else index


def _read_digit(payload, offset, m) -> int:
    digit = _digit_value(payload[offset])
    if digit is None:
        raise DecodeError(offset, f"{payload[offset]!r} is not a digit")
    if digit >= m:
        raise DecodeError(offset, f"digit {digit} out of range for m={m}")
    return digit


def _decode_with_trie(payload, trie, m) -> List[Any]:
    out = []
    cur = trie
    start = 0
    for offset in range(len(payload)):
        digit = _read_digit(payload, offset, m)
        if digit not in cur:
            raise DecodeError(offset, "no code matches this prefix")
        cur = cur[digit]
        if "sym" in cur:
            out.append(cur["sym"])
            cur = trie
            start = offset + 1
    if cur is not trie:
        raise DecodeError(start, "payload ends inside a code")
    return out


def _decode_with_tree(payload, root, m) -> List[Any]:
    out = []
    node = root
    start = 0
    for offset in range(len(payload)):
        digit = _read_digit(payload, offset, m)
        if isinstance(root, Leaf):
            # single-symbol tree: every symbol is the digit 0
            if digit != 0:
                raise DecodeError(offset, "no code matches this prefix")
            out.append(root.symbol)
            start = offset + 1
            continue
        if digit >= len(node.children):
            raise DecodeError(offset, "no code matches this prefix")
        node = node.children[digit]
        if isinstance(node, Dummy):
            raise DecodeError(offset, "code leads to a dummy leaf")
        if isinstance(node, Leaf):
            out.append(node.symbol)
            node = root
            start = offset + 1
    if node is not root:
        raise DecodeError(start, "payload ends inside a code")
    return out


def _tree_arity(root) -> int:
    widest = 2
    stack = [root]
    while stack:
        node = stack.pop()
        widest = max(widest, len(node.children))
        stack.extend(node.children)
    return widest


@dataclass
class ExportRecord:
    arity: int
    codes: List[Tuple[Any, str]]
    payload: str
    filename: str = ""

    def code_table(self) -> CodeTable:
        return CodeTable(dict(self.codes), self.arity)

    def to_json(self) -> str:
        return json.dumps({
            "format_version": EXPORT_FORMAT_VERSION,
            "m": self.arity,
            "filename": self.filename,
            "codes": [[symbol, code] for symbol, code in self.codes],
            "encoded": self.payload,
        }, indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "ExportRecord":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"export record is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError("export record must be a JSON object")
        missing = {"m", "codes", "encoded"} - raw.keys()
        if missing:
            raise ConfigurationError(f"export record is missing {sorted(missing)}")
        version = raw.get("format_version", EXPORT_FORMAT_VERSION)
        if version != EXPORT_FORMAT_VERSION:
            raise ConfigurationError(f"unsupported export format version {version!r}")
        if not isinstance(raw["encoded"], str):
            raise ConfigurationError("export record 'encoded' must be a string")
        if not isinstance(raw["codes"], list):
            raise ConfigurationError("export record 'codes' must be a list")
        codes = []
        seen = set()
        for pair in raw["codes"]:
            if not isinstance(pair, list) or len(pair) != 2 or not isinstance(pair[1], str):
                raise ConfigurationError(f"bad code table entry {pair!r}")
            symbol = pair[0]
            if isinstance(symbol, (list, dict)):
                raise ConfigurationError(f"symbol {symbol!r} cannot be a table key")
            if symbol in seen:
                raise ConfigurationError(f"symbol {symbol!r} listed twice")
            seen.add(symbol)
            codes.append((symbol, pair[1]))
        return cls(validate_arity(raw["m"]), codes, raw["encoded"], raw.get("filename", ""))

    def write(self, path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")
        return path

    @classmethod
    def read(cls, path) -> "ExportRecord":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))
