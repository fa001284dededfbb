"""
JSON-driven database seeder

The config file lists tables in dependency order. Each entry names a data
file (resolved relative to the config's directory, then its data/ folder),
the fields that must be present, fields to bcrypt-hash and lookup fields
that turn a natural key (e.g. user_email) into a foreign key id.
"""
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, text
from sqlalchemy.orm import Session

from mathlearn.models import Lesson, Problem, ProblemOption, Submission, User, UserProgress
from mathlearn.utils.cache import cache_service
from mathlearn.utils.passwords import hash_password

logger = logging.getLogger(__name__)

# table name in config -> (model, natural key fields, extra fields cached for lookups)
TABLES = {
    "users": (User, ("email",), ("username",)),
    "lessons": (Lesson, ("id",), ("title",)),
    "problems": (Problem, ("id",), ()),
    "problemOptions": (ProblemOption, ("id",), ()),
    "userProgress": (UserProgress, ("user_id", "lesson_id"), ()),
}

# tables whose rows end up in cached lesson detail payloads
LESSON_CONTENT_TABLES = {"lessons", "problems", "problemOptions"}


class SeedError(Exception):
    """Seeding could not complete"""
    pass


@dataclass
class TableConfig:
    table: str
    file: str
    description: str = ""
    dependencies: List[str] = field(default_factory=list)
    required_fields: List[str] = field(default_factory=list)
    hash_fields: List[str] = field(default_factory=list)
    lookup_fields: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableConfig":
        return cls(
            table=data["table"],
            file=data["file"],
            description=data.get("description", ""),
            dependencies=list(data.get("dependencies", [])),
            required_fields=list(data.get("requiredFields", [])),
            hash_fields=list(data.get("hashFields", [])),
            lookup_fields=dict(data.get("lookupFields", {})),
        )


@dataclass
class TableResult:
    table: str
    created: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped


class JsonSeeder:
    """Seeds the database from a JSON config and per-table data files"""

    def __init__(self, db: Session, config_path):
        self.db = db
        self.config_path = Path(config_path)
        config = self._load_json(self.config_path, "seed config")

        try:
            self.version = config.get("version", "unknown")
            self.description = config.get("description", "")
            self.tables = [TableConfig.from_dict(entry) for entry in config["seedOrder"]]
            settings = config.get("settings", {})
        except (KeyError, TypeError, AttributeError) as e:
            raise SeedError(f"Malformed seed config {self.config_path}: {e}")

        self.skip_existing = bool(settings.get("skipExisting", False))
        try:
            self.salt_rounds = int(settings.get("saltRounds", 12))
            logger.setLevel(str(settings.get("logLevel", "info")).upper())
        except (TypeError, ValueError) as e:
            raise SeedError(f"Invalid settings in seed config {self.config_path}: {e}")

        # table -> {"field:value": id}
        self.record_cache: Dict[str, Dict[str, str]] = {}
        self._seeded = set()

        logger.info(f"JsonSeeder initialized with config version {self.version}")

    def list_tables(self) -> List[TableConfig]:
        return list(self.tables)

    def get_table_info(self, table_name: str) -> Optional[TableConfig]:
        for table_config in self.tables:
            if table_config.table == table_name:
                return table_config
        return None

    def seed_all(self) -> List[TableResult]:
        """Seed every configured table in order"""
        logger.info(f"Starting database seeding: {self.description}")
        start = time.time()

        results = [self._seed_table(table_config) for table_config in self.tables]

        logger.info(f"Database seeding completed in {time.time() - start:.2f}s")
        return results

    def seed_table_by_name(self, table_name: str) -> List[TableResult]:
        """Seed one table after (recursively) seeding its dependencies"""
        table_config = self.get_table_info(table_name)
        if table_config is None:
            raise SeedError(f"Table configuration not found: {table_name}")

        results = []
        for dependency in table_config.dependencies:
            if dependency not in self._seeded and self.get_table_info(dependency):
                results.extend(self.seed_table_by_name(dependency))
        results.append(self._seed_table(table_config))
        return results

    def clean(self) -> Dict[str, int]:
        """
        Remove lesson content and activity, keep users with their XP reset

        Runs in one transaction; cached lesson payloads are dropped afterwards.
        """
        logger.info("Cleaning database")
        try:
            counts = {
                "userProgress": self.db.query(UserProgress).delete(synchronize_session=False),
                "submissions": self.db.query(Submission).delete(synchronize_session=False),
                "problemOptions": self.db.query(ProblemOption).delete(synchronize_session=False),
                "problems": self.db.query(Problem).delete(synchronize_session=False),
                "lessons": self.db.query(Lesson).delete(synchronize_session=False),
            }
            counts["usersReset"] = self.db.query(User).update(
                {
                    User.total_xp: 0,
                    User.current_streak: 0,
                    User.best_streak: 0,
                    User.last_activity_date: None,
                },
                synchronize_session=False,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Database cleanup failed: {str(e)}")
            raise SeedError(f"Database cleanup failed: {e}")

        self.db.expire_all()
        self.record_cache.clear()
        self._seeded.clear()
        cache_service.clear_lessons()

        logger.info(f"Database cleaned: {counts}")
        return counts

    def reset(self) -> List[TableResult]:
        self.clean()
        return self.seed_all()

    def test_connection(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {str(e)}")
            return False

    def _seed_table(self, table_config: TableConfig) -> TableResult:
        if table_config.table not in TABLES:
            raise SeedError(f"Unsupported table: {table_config.table}")
        model, key_fields, cached_fields = TABLES[table_config.table]

        logger.info(f"Seeding table {table_config.table}: {table_config.description}")
        records = self._load_records(table_config)
        result = TableResult(table=table_config.table)

        try:
            for raw in records:
                record = self._prepare(table_config, model, raw)
                status, instance = self._upsert(model, key_fields, record)
                setattr(result, status, getattr(result, status) + 1)
                self._cache_record(table_config.table, instance, key_fields + cached_fields)
            self.db.commit()
        except SeedError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to seed {table_config.table}: {str(e)}")
            raise SeedError(f"Failed to seed {table_config.table}: {e}")

        self._seeded.add(table_config.table)
        if table_config.table in LESSON_CONTENT_TABLES:
            cache_service.clear_lessons()
        logger.info(
            f"Table {table_config.table}: {result.created} created, "
            f"{result.updated} updated, {result.skipped} skipped"
        )
        return result

    def _load_records(self, table_config: TableConfig) -> List[Dict[str, Any]]:
        base = self.config_path.parent
        candidates = [base / table_config.file, base / "data" / table_config.file]
        for path in candidates:
            if path.exists():
                records = self._load_json(path, f"{table_config.table} data")
                if not isinstance(records, list):
                    raise SeedError(f"{path} must contain a JSON array")
                logger.debug(f"Loaded {len(records)} records from {path.name}")
                return records
        raise SeedError(f"Data file {table_config.file} for {table_config.table} not found next to {self.config_path}")

    def _prepare(self, table_config: TableConfig, model, raw: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(raw)

        for name in table_config.hash_fields:
            if record.get(name):
                record[name] = hash_password(record[name], rounds=self.salt_rounds)

        for lookup_field, lookup in table_config.lookup_fields.items():
            if lookup_field not in record:
                continue
            value = record[lookup_field]
            referenced_id = self._resolve_lookup(lookup["table"], lookup["field"], value)
            if referenced_id is None:
                logger.warning(f"Could not resolve {lookup_field}={value} in {lookup['table']}")
                continue
            record[lookup["maps_to"]] = referenced_id
            del record[lookup_field]

        for name in table_config.required_fields:
            if record.get(name) in (None, ""):
                raise SeedError(f"Missing required field '{name}' in {table_config.table} record: {raw}")

        columns = model.__table__.columns
        unknown = [name for name in record if name not in columns]
        if unknown:
            raise SeedError(f"Unknown field(s) {', '.join(unknown)} in {table_config.table} record: {raw}")

        for name, value in record.items():
            if isinstance(columns[name].type, DateTime) and isinstance(value, str):
                record[name] = self._parse_datetime(name, value)

        return record

    def _upsert(self, model, key_fields, record: Dict[str, Any]):
        missing_keys = [k for k in key_fields if record.get(k) is None]
        existing = None
        if not missing_keys:
            existing = (
                self.db.query(model)
                .filter(*[getattr(model, k) == record[k] for k in key_fields])
                .first()
            )

        if existing is None:
            instance = model(**record)
            self.db.add(instance)
            self.db.flush()
            return "created", instance

        if self.skip_existing:
            return "skipped", existing

        for name, value in record.items():
            setattr(existing, name, value)
        self.db.flush()
        return "updated", existing

    def _cache_record(self, table: str, instance, fields) -> None:
        cache = self.record_cache.setdefault(table, {})
        cache[f"id:{instance.id}"] = instance.id
        for name in fields:
            value = getattr(instance, name, None)
            if value is not None:
                cache[f"{name}:{value}"] = instance.id

    def _resolve_lookup(self, table: str, field_name: str, value) -> Optional[str]:
        cached = self.record_cache.get(table, {}).get(f"{field_name}:{value}")
        if cached is not None:
            return cached

        if table not in TABLES:
            raise SeedError(f"Lookup references unsupported table: {table}")
        model = TABLES[table][0]
        if field_name not in model.__table__.columns:
            raise SeedError(f"Lookup references unknown field {table}.{field_name}")

        found = self.db.query(model).filter(getattr(model, field_name) == value).first()
        if found is None:
            return None
        self.record_cache.setdefault(table, {})[f"{field_name}:{value}"] = found.id
        return found.id

    @staticmethod
    def _parse_datetime(name: str, value: str) -> datetime:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise SeedError(f"Invalid ISO date for {name}: {value}")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    @staticmethod
    def _load_json(path: Path, what: str):
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SeedError(f"Failed to load {what} from {path}: {e}")
