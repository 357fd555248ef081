# typegen/config_models.py
from __future__ import annotations
import keyword
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class TranslationPolicy:
    use_camel_case_names: bool
    generate_nested_declarations: bool
    exclude_navigation_candidates: bool
    include_ignored_properties: bool
    custom_type_mappings: Mapping[str, str]
    emit_header_comment: bool
    emit_index_manifests: bool


class DbEnumConfig(BaseModel):
    tableName: str
    keyColumn: str
    valueColumn: str
    enumName: str
    customOutputPath: Optional[str] = None


class TypeGenConfig(BaseModel):
    connectionString: str = ""
    modulesToScan: List[str] = Field(default_factory=list)
    typeScriptInterfacesOutputPath: str = "./src/app/core/models/generated/"
    typeScriptEnumsOutputPath: str = "./src/app/core/enums/generated/"
    pythonEnumsOutputPath: str = "./generated/enums/"
    databaseEnums: List[DbEnumConfig] = Field(default_factory=list)
    generateIndexFiles: bool = False
    useCamelCase: bool = True
    addGeneratedHeaders: bool = True
    ignoreNavigationProperties: bool = True
    generateNestedInterfaces: bool = True
    includeJsonIgnoreProperties: bool = True
    typeMappings: Dict[str, str] = Field(default_factory=dict)

    def policy(self) -> TranslationPolicy:
        return TranslationPolicy(
            use_camel_case_names=self.useCamelCase,
            generate_nested_declarations=self.generateNestedInterfaces,
            exclude_navigation_candidates=self.ignoreNavigationProperties,
            include_ignored_properties=self.includeJsonIgnoreProperties,
            custom_type_mappings=dict(self.typeMappings),
            emit_header_comment=self.addGeneratedHeaders,
            emit_index_manifests=self.generateIndexFiles,
        )

    def validate_semantics(self) -> "ValidationResult":
        """
        Cross-field checks the JSON-Schema can't express.
        Errors make the config unusable; warnings are logged by the loader.
        """
        result = ValidationResult()

        if self.databaseEnums:
            if not self.connectionString.strip():
                result.errors.append("connectionString is required when databaseEnums are configured.")
            if not self.pythonEnumsOutputPath.strip():
                result.warnings.append(
                    "pythonEnumsOutputPath not specified - database enums will not be generated."
                )
            for db_enum in self.databaseEnums:
                _validate_db_enum(db_enum, result)
            if self.pythonEnumsOutputPath.strip():
                _warn_missing_dir(self.pythonEnumsOutputPath, "pythonEnumsOutputPath", result)

        if self.modulesToScan:
            if not self.typeScriptInterfacesOutputPath.strip():
                result.errors.append(
                    "typeScriptInterfacesOutputPath is required when modulesToScan are configured."
                )
            else:
                _warn_missing_dir(self.typeScriptInterfacesOutputPath, "typeScriptInterfacesOutputPath", result)
            if not self.typeScriptEnumsOutputPath.strip():
                result.errors.append(
                    "typeScriptEnumsOutputPath is required when modulesToScan are configured."
                )
            else:
                _warn_missing_dir(self.typeScriptEnumsOutputPath, "typeScriptEnumsOutputPath", result)
            if any(not m.strip() for m in self.modulesToScan):
                result.warnings.append("Empty module entry found in modulesToScan.")

        return result


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def format_errors(self) -> str:
        return "\n".join(f"  - {e}" for e in self.errors)


def _validate_db_enum(db_enum: DbEnumConfig, result: ValidationResult) -> None:
    if not db_enum.tableName.strip():
        result.errors.append("tableName is required for all database enum configurations.")
    if not db_enum.keyColumn.strip():
        result.errors.append(f"keyColumn is required for database enum '{db_enum.enumName}'.")
    if not db_enum.valueColumn.strip():
        result.errors.append(f"valueColumn is required for database enum '{db_enum.enumName}'.")
    if not db_enum.enumName.strip():
        result.errors.append(f"enumName is required for database enum with table '{db_enum.tableName}'.")
    elif not db_enum.enumName.isidentifier() or keyword.iskeyword(db_enum.enumName):
        result.errors.append(f"enumName '{db_enum.enumName}' is not a valid Python identifier.")


def _warn_missing_dir(path: str, name: str, result: ValidationResult) -> None:
    directory = Path(path).expanduser().resolve()
    if not directory.exists():
        result.warnings.append(f"{name} directory does not exist: {directory}. It will be created during generation.")
