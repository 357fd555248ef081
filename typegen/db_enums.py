# typegen/db_enums.py
"""
Database enum synthesizer: turns (key, value) lookup tables into Python enum
modules carrying @export_to_ts, ready to be picked up by the next scan.
"""
from __future__ import annotations
import keyword
import logging
import re
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from typegen.config_models import DbEnumConfig, TypeGenConfig
from typegen.db import create_db_engine, mask_url
from typegen.errors import EnumSourceError
from typegen.ports import ArtifactSink
from typegen.writer import FileArtifactWriter

logger = logging.getLogger(__name__)

PLACEHOLDER_MEMBER = "Unknown"
DIGIT_PREFIX = "Item"

# Identifiers matching one of these (case-insensitively) are always quoted.
RESERVED_WORDS = frozenset({
    "order", "group", "user", "role", "type", "class", "namespace", "public", "private",
    "protected", "internal", "static", "readonly", "const", "new", "override", "virtual",
    "abstract", "sealed", "partial", "async", "await", "using", "var", "dynamic",
    "true", "false", "null", "this", "base", "return", "if", "else", "switch", "case",
    "default", "for", "foreach", "while", "do", "break", "continue", "try", "catch",
    "finally", "throw", "lock", "checked", "unchecked", "unsafe", "fixed", "sizeof",
    "typeof", "nameof", "is", "as", "in", "out", "ref", "params", "delegate", "event",
    "operator", "implicit", "explicit", "interface", "struct", "enum", "union", "select",
})

Row = Tuple[Any, Any]


# ---- SQL ---------------------------------------------------------------------

def _quote_single(identifier: str) -> str:
    if len(identifier) >= 2 and identifier.startswith('"') and identifier.endswith('"'):
        return identifier
    needs_quoting = (
        identifier.lower() in RESERVED_WORDS
        or not identifier[:1].isalpha()
        or any(not (c.isalnum() or c == "_") for c in identifier)
    )
    return f'"{identifier}"' if needs_quoting else identifier


def quote_identifier(identifier: str) -> str:
    """Quote each part of a (possibly schema-qualified) identifier where required."""
    if not identifier or not identifier.strip():
        return identifier
    return ".".join(_quote_single(part) for part in identifier.split("."))


def build_enum_query(source: DbEnumConfig) -> str:
    key = quote_identifier(source.keyColumn)
    value = quote_identifier(source.valueColumn)
    table = quote_identifier(source.tableName)
    return f"SELECT {key}, {value} FROM {table} ORDER BY {key}"


# ---- naming ------------------------------------------------------------------

def sanitize_member_name(value: Optional[str]) -> str:
    """
    "Active User" -> "ActiveUser", "inactive-user" -> "InactiveUser",
    "2fa" -> "Item2fa", "" -> "Unknown".
    """
    if value is None or not str(value).strip():
        return PLACEHOLDER_MEMBER

    out: List[str] = []
    capitalize_next = True
    for c in str(value):
        if c.isalnum():
            out.append(c.upper() if capitalize_next else c)
            capitalize_next = False
        elif c.isspace() or c in "-_":
            capitalize_next = True

    result = "".join(out)
    if not result:
        return PLACEHOLDER_MEMBER
    if result[0].isdigit():
        result = DIGIT_PREFIX + result
    if keyword.iskeyword(result):
        result += "_"
    return result


def unique_member_names(values: Sequence[Any]) -> List[str]:
    names: List[str] = []
    used = set()
    for value in values:
        base = sanitize_member_name(None if value is None else str(value))
        name, n = base, 2
        while name in used:
            name = f"{base}{n}"
            n += 1
        used.add(name)
        names.append(name)
    return names


def module_file_name(enum_name: str) -> str:
    snake = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", enum_name)
    snake = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", snake)
    return f"{snake.lower()}.py"


# ---- rendering ---------------------------------------------------------------

def render_enum_module(source: DbEnumConfig, rows: Sequence[Row]) -> str:
    integral = all(isinstance(k, int) and not isinstance(k, bool) for k, _ in rows)
    base = "IntEnum" if integral else "Enum"
    names = unique_member_names([v for _, v in rows])

    lines = [
        "# <auto-generated />",
        "# Changes to this file may be overwritten.",
        "",
        f"from enum import {base}",
        "",
        "from typegen.markers import export_to_ts",
        "",
        "",
        "@export_to_ts",
        f"class {source.enumName}({base}):",
        f'    """Auto-generated enum from database table: {source.tableName}"""',
        "",
    ]
    for name, (key, _) in zip(names, rows):
        literal = str(key) if integral else repr(str(key))
        lines.append(f"    {name} = {literal}")
    return "\n".join(lines) + "\n"


# ---- generator ---------------------------------------------------------------

class DbEnumGenerator:
    def __init__(
        self,
        writer: Optional[ArtifactSink] = None,
        engine_factory: Callable[[str], Engine] = create_db_engine,
    ):
        self.writer = writer or FileArtifactWriter()
        self.engine_factory = engine_factory

    def generate(self, config: TypeGenConfig) -> List[Path]:
        if not config.databaseEnums:
            logger.info("No database enums configured to generate")
            return []

        masked = mask_url(config.connectionString)
        logger.info("Connecting to database: %s", masked)
        try:
            engine = self.engine_factory(config.connectionString)
        except SQLAlchemyError as exc:
            raise EnumSourceError(f"Invalid database connection string: {masked}") from exc

        written: List[Path] = []
        try:
            try:
                connection = engine.connect()
            except SQLAlchemyError as exc:
                raise EnumSourceError(f"Failed to connect to database: {masked}") from exc
            with connection:
                for source in config.databaseEnums:
                    path = self.generate_one(connection, source, config.pythonEnumsOutputPath)
                    if path is not None:
                        written.append(path)
        finally:
            engine.dispose()
        return written

    def fetch_rows(self, connection: Connection, source: DbEnumConfig) -> List[Row]:
        sql = build_enum_query(source)
        logger.debug("Executing SQL: %s", sql)
        try:
            result = connection.execute(text(sql))
            return [(row[0], row[1]) for row in result]
        except SQLAlchemyError as exc:
            raise EnumSourceError(
                f"Failed to read enum {source.enumName} from table {source.tableName}"
            ) from exc

    def generate_one(self, connection: Connection, source: DbEnumConfig, default_dir: str) -> Optional[Path]:
        logger.info("Generating enum %s from table %s", source.enumName, source.tableName)
        rows = self.fetch_rows(connection, source)
        if not rows:
            logger.warning("No data found in table %s for enum %s", source.tableName, source.enumName)
            return None

        out_dir = Path(source.customOutputPath or default_dir)
        path = self.writer.write_text(out_dir / module_file_name(source.enumName), render_enum_module(source, rows))
        logger.info("Generated enum %s -> %s", source.enumName, path)
        return path
