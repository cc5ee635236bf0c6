"""SQLite-backed store for accounts and Gmail integrations.

Accounts carry the mailbox address and OAuth token material written by the
authorization flow; integrations link an account to the calling system's own
integration id and track the push-notification subscription.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import structlog

from gmail_integration.models import Account, Integration, SubscriptionStatus

logger = structlog.get_logger()


_SCHEMA_VERSION = 1


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class IntegrationStore:
    """Repository for accounts and their Gmail integrations."""

    def __init__(self, db_path: Path) -> None:
        """Create a store.

        Args:
            db_path: Path to the SQLite database file.
        """

        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Create the schema if needed and check its version."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                conn.commit()
                logger.info("integration_store_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise RuntimeError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    # Accounts

    def add_account(self, account: Account) -> None:
        """Insert or replace an account."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO accounts (id, uid, kind, token, refresh_token, expiry_iso, scope)
                VALUES (:id, :uid, :kind, :token, :refresh_token, :expiry_iso, :scope)
                ON CONFLICT(id) DO UPDATE SET
                    uid=excluded.uid,
                    kind=excluded.kind,
                    token=excluded.token,
                    refresh_token=excluded.refresh_token,
                    expiry_iso=excluded.expiry_iso,
                    scope=excluded.scope
                """,
                {
                    "id": account.id,
                    "uid": account.uid,
                    "kind": account.kind,
                    "token": account.token,
                    "refresh_token": account.refresh_token,
                    "expiry_iso": _to_iso(account.expiry),
                    "scope": account.scope,
                },
            )
            conn.commit()

    def get_account(self, account_id: str) -> Account | None:
        """Return the account with the given id, if any."""

        with self._connect() as conn:
            row = conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,)).fetchone()

        return self._row_to_account(row) if row else None

    def get_account_by_email(self, email: str) -> Account | None:
        """Return the account whose mailbox address matches, ignoring case."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE uid = ? COLLATE NOCASE ORDER BY id LIMIT 1",
                (email,),
            ).fetchone()

        return self._row_to_account(row) if row else None

    # Integrations

    def create_integration(
        self,
        *,
        kind: str,
        account_id: str,
        external_integration_id: str,
        email: str,
    ) -> Integration:
        """Insert a new integration in the pending state and return it."""

        now = datetime.now(timezone.utc)
        now_iso = now.isoformat()

        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO integrations (
                    kind,
                    account_id,
                    external_integration_id,
                    email,
                    subscription_status,
                    created_at_iso,
                    updated_at_iso
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    kind,
                    account_id,
                    external_integration_id,
                    email,
                    SubscriptionStatus.PENDING.value,
                    now_iso,
                    now_iso,
                ),
            )
            conn.commit()
            integration_id = int(cursor.lastrowid)

        logger.info(
            "integration_created",
            integration_id=integration_id,
            account_id=account_id,
            email=email,
        )

        return Integration(
            id=integration_id,
            kind=kind,
            account_id=account_id,
            external_integration_id=external_integration_id,
            email=email,
            subscription_status=SubscriptionStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def save_integration(self, integration: Integration) -> Integration:
        """Persist the subscription fields of an integration.

        Returns:
            The integration with its refreshed ``updated_at``.
        """

        integration.updated_at = datetime.now(timezone.utc)

        with self._connect() as conn:
            conn.execute(
                """
                UPDATE integrations SET
                    gmail_history_id = ?,
                    expiration_iso = ?,
                    subscription_status = ?,
                    subscription_error = ?,
                    updated_at_iso = ?
                WHERE id = ?
                """,
                (
                    integration.gmail_history_id,
                    _to_iso(integration.expiration),
                    integration.subscription_status.value,
                    integration.subscription_error,
                    integration.updated_at.isoformat(),
                    integration.id,
                ),
            )
            conn.commit()

        return integration

    def get_integration(self, integration_id: int) -> Integration | None:
        """Return the integration with the given id, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM integrations WHERE id = ?", (integration_id,)
            ).fetchone()

        return self._row_to_integration(row) if row else None

    def list_integrations(self, account_id: str | None = None) -> list[Integration]:
        """List integrations, optionally restricted to one account."""

        with self._connect() as conn:
            if account_id is None:
                rows = conn.execute("SELECT * FROM integrations ORDER BY id").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM integrations WHERE account_id = ? ORDER BY id",
                    (account_id,),
                ).fetchall()

        return [self._row_to_integration(row) for row in rows]

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        try:
            conn.row_factory = sqlite3.Row
            yield conn
        finally:
            conn.close()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS accounts (
                id TEXT PRIMARY KEY,
                uid TEXT NOT NULL,
                kind TEXT NOT NULL,
                token TEXT,
                refresh_token TEXT,
                expiry_iso TEXT,
                scope TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_accounts_uid
                ON accounts(uid COLLATE NOCASE);

            CREATE TABLE IF NOT EXISTS integrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                kind TEXT NOT NULL,
                account_id TEXT NOT NULL,
                external_integration_id TEXT NOT NULL,
                email TEXT NOT NULL,
                gmail_history_id TEXT,
                expiration_iso TEXT,
                subscription_status TEXT NOT NULL,
                subscription_error TEXT,
                created_at_iso TEXT NOT NULL,
                updated_at_iso TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_integrations_account_id
                ON integrations(account_id);
            """
        )

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            uid=row["uid"],
            kind=row["kind"],
            token=row["token"],
            refresh_token=row["refresh_token"],
            expiry=_from_iso(row["expiry_iso"]),
            scope=row["scope"],
        )

    def _row_to_integration(self, row: sqlite3.Row) -> Integration:
        return Integration(
            id=row["id"],
            kind=row["kind"],
            account_id=row["account_id"],
            external_integration_id=row["external_integration_id"],
            email=row["email"],
            gmail_history_id=row["gmail_history_id"],
            expiration=_from_iso(row["expiration_iso"]),
            subscription_status=SubscriptionStatus(row["subscription_status"]),
            subscription_error=row["subscription_error"],
            created_at=datetime.fromisoformat(row["created_at_iso"]),
            updated_at=datetime.fromisoformat(row["updated_at_iso"]),
        )
