"""
MT940 statement decoder.

Turns raw statement text into Statement values:

    {1:F01BANKBEBBAXXX0000000000}{2:O940...}{4:
    :20:STMT-REF
    :25:NL81ASNB9999999999
    :28C:1/1
    :60F:C240101EUR100,00
    :61:2401020102C50,00NTRFINV-1//BANKREF1
    :86:/EREF/INV-1/REMI/Invoice 1
    :62F:C240102EUR150,00
    -}

Each message in a file is decoded independently; a broken message yields a
Mt940ParseError carrying its ordinal index and does not affect its siblings.
"""
import hashlib
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .errors import ArchiveError, Mt940ParseError

ENVELOPE_START = "{1:"
TEXT_BLOCK_START = "{4:"
STATEMENT_MEMBER_EXTENSIONS = (".mt940", ".sta")

DEBIT_MARKS = ("D", "RC")

_TAG_RE = re.compile(r"^:(\d{2}[A-Z]?):(.*)$")
_BALANCE_RE = re.compile(
    r"^(?P<mark>[CD])(?P<date>\d{6})(?P<currency>[A-Z]{3})(?P<amount>\d[\d,]*)$"
)
_STATEMENT_LINE_RE = re.compile(
    r"^(?P<value_date>\d{6})"
    r"(?P<entry_date>\d{4})?"
    r"(?P<mark>RC|RD|C|D)"
    r"(?P<funds_code>[A-Z])?"
    r"(?P<amount>\d[\d,]*)"
    r"(?P<type_code>[A-Z][A-Z0-9]{3})"
    r"(?P<customer_ref>.*?)"
    r"(?://(?P<bank_ref>.*))?$"
)
_QUESTION_SUBFIELD_RE = re.compile(r"\?(\d{2})")
_SLASH_SUBFIELD_RE = re.compile(r"/([A-Z]{2,4})/")

BALANCE_TAGS = {
    "60F": "OPENING",
    "60M": "OPENING",
    "62F": "CLOSING",
    "62M": "CLOSING",
    "64": "AVAILABLE",
    "65": "FORWARD",
}


@dataclass(frozen=True)
class RawLine:
    line_no: int
    tag: Optional[str]
    text: str


@dataclass(frozen=True)
class Balance:
    kind: str  # OPENING, CLOSING, AVAILABLE, FORWARD
    mark: str  # C or D
    date: date
    currency: str
    amount: Decimal

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.mark == "D" else self.amount


@dataclass(frozen=True)
class Transaction:
    line_no: int
    value_date: date
    entry_date: Optional[date]
    mark: str
    funds_code: Optional[str]
    amount: Decimal
    signed_amount: Decimal
    currency: Optional[str]
    txn_type_code: str
    customer_reference: Optional[str]
    bank_reference: Optional[str]
    entry_reference: Optional[str]
    narrative: Optional[str]
    segments: Tuple[Tuple[str, str], ...]
    idempotency_hash: str
    raw_lines: Tuple[RawLine, ...] = ()


@dataclass(frozen=True)
class Statement:
    index: int
    reference: str
    sequence: Optional[str]
    account: Optional[str]
    currency: Optional[str]
    is_interim: bool
    opening_balance: Optional[Balance]
    closing_balance: Optional[Balance]
    other_balances: Tuple[Balance, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    raw_lines: Tuple[RawLine, ...] = ()
    source: Optional[str] = None  # zip member name


@dataclass(frozen=True)
class DecodedMessage:
    """Outcome of decoding one message: a statement or the error that stopped it"""
    index: int
    statement: Optional[Statement] = None
    error: Optional[Mt940ParseError] = None


@dataclass
class _Field:
    tag: str
    lines: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def first(self) -> str:
        return self.lines[0][1].strip()

    @property
    def continuation(self) -> List[str]:
        return [text for _, text in self.lines[1:]]

    @property
    def value(self) -> str:
        return "\n".join(text for _, text in self.lines).strip()

    def raw_lines(self) -> Tuple[RawLine, ...]:
        return tuple(
            RawLine(line_no, self.tag, (f":{self.tag}:" if i == 0 else "") + text)
            for i, (line_no, text) in enumerate(self.lines)
        )


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------

def parse_amount(text: str) -> Decimal:
    """SWIFT amounts use a comma as the decimal mark: '1234,56' or '100,'"""
    try:
        return Decimal(text.strip().replace(",", "."))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {text!r}")


def parse_swift_date(text: str) -> date:
    """YYMMDD"""
    return datetime.strptime(text, "%y%m%d").date()


def infer_entry_date(value_date: date, mmdd: str) -> date:
    """Entry dates carry no year; pick the one closest to the value date"""
    month, day = int(mmdd[:2]), int(mmdd[2:])
    candidates = []
    for year in (value_date.year - 1, value_date.year, value_date.year + 1):
        try:
            candidates.append(date(year, month, day))
        except ValueError:
            continue
    if not candidates:
        raise ValueError(f"Invalid entry date: {mmdd!r}")
    return min(candidates, key=lambda d: abs((d - value_date).days))


def compute_idempotency_hash(*parts: Optional[str]) -> str:
    """SHA-256 over the pipe-joined parts, None rendered as ''"""
    raw = "|".join("" if part is None else str(part) for part in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def decompose_narrative(narrative: Optional[str]) -> Tuple[Tuple[str, str], ...]:
    """
    Split a :86: narrative into ordered (key, value) segments.

    Recognized conventions:
      ?NN sub-fields    166?00GUTSCHRIFT?20INV 42?32ACME   (leading code -> GVC)
      /KEY/ sub-fields  /EREF/E2E-1/REMI/Invoice 42
    Anything else is kept whole as a single FULL segment.
    """
    if narrative is None:
        return ()
    flat = narrative.replace("\r", "").replace("\n", "")

    if _QUESTION_SUBFIELD_RE.search(flat):
        parts = _QUESTION_SUBFIELD_RE.split(flat)
        segments = []
        if parts[0].strip():
            segments.append(("GVC", parts[0].strip()))
        segments.extend((key, value.strip()) for key, value in zip(parts[1::2], parts[2::2]))
        return tuple(segments)

    if _SLASH_SUBFIELD_RE.match(flat):
        parts = _SLASH_SUBFIELD_RE.split(flat)
        return tuple((key, value.strip()) for key, value in zip(parts[1::2], parts[2::2]))

    return (("FULL", narrative),)


# ---------------------------------------------------------------------------
# Message splitting and field tokenizing
# ---------------------------------------------------------------------------

def split_messages(content: str) -> List[Tuple[int, str]]:
    """
    Split file content into (first_line_no, message_text) chunks.

    A message starts at every '{1:' envelope marker; text before the first
    marker is dropped. Content with no envelope is split on '-' terminator
    lines and every piece holding a :20: tag is a bare message.
    """
    starts = [m.start() for m in re.finditer(re.escape(ENVELOPE_START), content)]
    if not starts:
        return _split_bare_messages(content)

    chunks = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else len(content)
        text = content[start:end]
        if text.strip():
            chunks.append((content.count("\n", 0, start) + 1, text))
    return chunks


def _split_bare_messages(content: str) -> List[Tuple[int, str]]:
    chunks = []
    first_line, current = 1, []
    for line_no, line in enumerate(content.splitlines(), 1):
        if line.strip() == "-":
            chunks.append((first_line, current))
            first_line, current = line_no + 1, []
        else:
            current.append(line)
    chunks.append((first_line, current))
    return [
        (start, "\n".join(lines))
        for start, lines in chunks
        if any(line.startswith(":20:") for line in lines)
    ]


def _body_lines(text: str, first_line: int) -> Iterator[Tuple[int, str]]:
    """Yield (line_no, text) for the lines of the {4: text block"""
    lines = text.splitlines()
    start = next((i for i, line in enumerate(lines) if TEXT_BLOCK_START in line), None)
    if start is None:
        numbered = list(enumerate(lines))
    else:
        head = lines[start].split(TEXT_BLOCK_START, 1)[1]
        numbered = [(start, head)] + list(enumerate(lines[start + 1:], start + 1))

    for offset, line in numbered:
        stripped = line.strip()
        if stripped.startswith("-}") or stripped == "-":
            return
        if start is not None and offset == start and not stripped:
            continue
        yield first_line + offset, line.rstrip()


def tokenize_fields(lines: Iterable[Tuple[int, str]]) -> List[_Field]:
    fields: List[_Field] = []
    for line_no, line in lines:
        match = _TAG_RE.match(line)
        if match:
            fields.append(_Field(match.group(1), [(line_no, match.group(2))]))
        elif fields and line.strip():
            fields[-1].lines.append((line_no, line))
    return fields


# ---------------------------------------------------------------------------
# Field decoders
# ---------------------------------------------------------------------------

def _decode_balance(fld: _Field) -> Balance:
    value = re.sub(r"\s+", "", fld.value)
    match = _BALANCE_RE.match(value)
    if not match:
        raise ValueError(f"Malformed balance field :{fld.tag}: {value!r}")
    return Balance(
        kind=BALANCE_TAGS[fld.tag],
        mark=match.group("mark"),
        date=parse_swift_date(match.group("date")),
        currency=match.group("currency"),
        amount=parse_amount(match.group("amount")),
    )


def _decode_transaction(
    line_fld: _Field,
    narrative_fld: Optional[_Field],
    account: Optional[str],
    reference: str,
    sequence: Optional[str],
    currency: Optional[str],
) -> Transaction:
    match = _STATEMENT_LINE_RE.match(line_fld.first)
    if not match:
        raise ValueError(f"Malformed statement line :61: {line_fld.first!r}")

    value_date_text = match.group("value_date")
    value_date = parse_swift_date(value_date_text)
    entry_date = infer_entry_date(value_date, match.group("entry_date")) if match.group("entry_date") else None
    mark = match.group("mark")
    amount_text = match.group("amount")
    amount = parse_amount(amount_text)
    customer_reference = match.group("customer_ref").strip() or None
    bank_reference = (match.group("bank_ref") or "").strip() or None
    entry_reference = " ".join(s.strip() for s in line_fld.continuation if s.strip()) or None
    narrative = narrative_fld.value if narrative_fld is not None else None

    fingerprint = compute_idempotency_hash(
        account, reference, sequence, value_date_text, amount_text, mark,
        entry_reference, bank_reference, customer_reference,
    )

    raw = line_fld.raw_lines() + (narrative_fld.raw_lines() if narrative_fld is not None else ())
    return Transaction(
        line_no=line_fld.lines[0][0],
        value_date=value_date,
        entry_date=entry_date,
        mark=mark,
        funds_code=match.group("funds_code"),
        amount=amount,
        signed_amount=-amount if mark in DEBIT_MARKS else amount,
        currency=currency,
        txn_type_code=match.group("type_code"),
        customer_reference=customer_reference,
        bank_reference=bank_reference,
        entry_reference=entry_reference,
        narrative=narrative,
        segments=decompose_narrative(narrative),
        idempotency_hash=fingerprint,
        raw_lines=raw,
    )


def parse_message(text: str, index: int = 0, first_line: int = 1, source: Optional[str] = None) -> Statement:
    """Decode one message into a Statement; raise Mt940ParseError on failure"""
    try:
        fields = tokenize_fields(_body_lines(text, first_line))
        if not fields:
            raise ValueError("Message has no tagged fields")

        by_tag = {}
        for fld in fields:
            by_tag.setdefault(fld.tag, fld)

        if "20" not in by_tag:
            raise ValueError("Mandatory field :20: missing")
        reference = by_tag["20"].value
        account = by_tag["25"].value if "25" in by_tag else None
        sequence = by_tag["28C"].value if "28C" in by_tag else None

        opening_fld = by_tag.get("60F") or by_tag.get("60M")
        closing_fld = by_tag.get("62F") or by_tag.get("62M")
        opening = _decode_balance(opening_fld) if opening_fld else None
        closing = _decode_balance(closing_fld) if closing_fld else None
        currency = opening.currency if opening else None
        is_interim = "60M" in by_tag or "62M" in by_tag
        others = tuple(_decode_balance(f) for f in fields if f.tag in ("64", "65"))

        # The i-th :61: pairs with the i-th :86:; surplus :86: fields are statement-level
        statement_lines = [f for f in fields if f.tag == "61"]
        narratives = [f for f in fields if f.tag == "86"]
        transactions = [
            _decode_transaction(
                fld, narratives[i] if i < len(narratives) else None,
                account, reference, sequence, currency,
            )
            for i, fld in enumerate(statement_lines)
        ]
    except (ValueError, InvalidOperation) as e:
        raise Mt940ParseError(str(e), index) from e

    raw_lines = tuple(line for fld in fields for line in fld.raw_lines())
    return Statement(
        index=index,
        reference=reference,
        sequence=sequence,
        account=account,
        currency=currency,
        is_interim=is_interim,
        opening_balance=opening,
        closing_balance=closing,
        other_balances=others,
        transactions=tuple(transactions),
        raw_lines=raw_lines,
        source=source,
    )


def decode_messages(content: str, source: Optional[str] = None) -> List[DecodedMessage]:
    """Decode every message in ``content``, isolating failures per message"""
    results = []
    for index, (first_line, text) in enumerate(split_messages(content)):
        try:
            results.append(DecodedMessage(index, statement=parse_message(text, index, first_line, source)))
        except Mt940ParseError as e:
            results.append(DecodedMessage(index, error=e))
    return results


def parse_mt940(content: str) -> List[Statement]:
    """Strict variant: the first broken message raises"""
    statements = []
    for decoded in decode_messages(content):
        if decoded.error is not None:
            raise decoded.error
        statements.append(decoded.statement)
    return statements


# ---------------------------------------------------------------------------
# File access
# ---------------------------------------------------------------------------

def _decode_text(data: bytes, name: str) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise Mt940ParseError(f"{name} is not valid UTF-8: {e}") from e


def read_statement_sources(path: Path, display_name: Optional[str] = None) -> List[Tuple[str, str]]:
    """
    Return (name, text) pairs for a statement file.

    A .zip container is opened in memory and only its .mt940/.sta members are
    returned; a container without any is an ArchiveError.
    """
    path = Path(path)
    name = display_name or path.name
    if not name.lower().endswith(".zip"):
        return [(name, _decode_text(path.read_bytes(), name))]

    try:
        with zipfile.ZipFile(path) as archive:
            members = [
                info for info in archive.infolist()
                if not info.is_dir() and info.filename.lower().endswith(STATEMENT_MEMBER_EXTENSIONS)
            ]
            sources = [
                (Path(info.filename).name, _decode_text(archive.read(info), info.filename))
                for info in members
            ]
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Failed to decompress zip: {name}") from e

    if not sources:
        raise ArchiveError(f"No MT940/STA files found in zip: {name}")
    return sources

