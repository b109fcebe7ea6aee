"""
Row-level security policy set.

The policies are data: one ``Policy`` per (table, command). Rendering them to
SQL is the migration's job (``upgrade_statements``). Every tenant policy
compares the row's ``org_id`` with the ``org_id`` claim written by
app.core.scope; customers, leads and deals additionally restrict update and
delete to privileged roles.

A row that fails a policy is silently filtered (select) or left untouched
(update/delete), so callers cannot tell "missing" from "not yours". Handlers
must therefore answer a uniform not-found for both.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from wedding_crm_shared.schemas.common import PRIVILEGED_ROLES

CLAIMS_FUNCTION = "public.request_claims"

COMMANDS = ("select", "insert", "update", "delete")

# Tables whose rows belong to exactly one org
TENANT_TABLES = ["users", "customers", "leads", "appointments", "deals"]

# Readable by anyone (signup lists orgs); owner-managed, so not FORCEd
PUBLIC_TABLES = ["orgs"]


def _claim(name: str) -> str:
    # (select ...) lets the planner evaluate the claims once per statement
    return f"((select {CLAIMS_FUNCTION}()) ->> '{name}')"


def org_match() -> str:
    return f"org_id = {_claim('org_id')}::uuid"


def role_in(roles: Iterable[str]) -> str:
    quoted = ", ".join(f"'{r}'" for r in roles)
    return f"{_claim('role')} in ({quoted})"


def org_match_with_role(roles: Iterable[str]) -> str:
    return f"{org_match()} and {role_in(roles)}"


@dataclass(frozen=True)
class Policy:
    name: str
    table: str
    command: str
    using: Optional[str] = None
    with_check: Optional[str] = None

    def create_sql(self) -> str:
        sql = f'create policy "{self.name}" on {self.table} for {self.command}'
        if self.using is not None:
            sql += f" using ({self.using})"
        if self.with_check is not None:
            sql += f" with check ({self.with_check})"
        return sql

    def drop_sql(self) -> str:
        return f'drop policy if exists "{self.name}" on {self.table}'


def _org_scoped(table: str, prefix: str, privileged_writes: bool) -> list[Policy]:
    """select/insert/update/delete policies for one tenant table."""
    write_using = (
        org_match_with_role(r.value for r in PRIVILEGED_ROLES)
        if privileged_writes
        else org_match()
    )
    return [
        Policy(f"{prefix}_select_org", table, "select", using=org_match()),
        Policy(f"{prefix}_insert_org", table, "insert", with_check=org_match()),
        # with check keeps org_id from being moved to another org
        Policy(f"{prefix}_update_org", table, "update", using=write_using, with_check=org_match()),
        Policy(f"{prefix}_delete_org", table, "delete", using=write_using),
    ]


POLICIES: list[Policy] = [
    Policy("orgs_read", "orgs", "select", using="true"),
    Policy("users_read_own_org", "users", "select", using=org_match()),
    Policy("users_insert_own_org", "users", "insert", with_check=org_match()),
    *_org_scoped("customers", "customers", privileged_writes=True),
    *_org_scoped("leads", "leads", privileged_writes=True),
    *_org_scoped("deals", "deals", privileged_writes=True),
    *_org_scoped("appointments", "apts", privileged_writes=False),
]


def policies_for(table: str) -> list[Policy]:
    return [p for p in POLICIES if p.table == table]


def claims_function_sql(claims_key: str = "request.jwt.claims") -> str:
    return f"""
        create or replace function {CLAIMS_FUNCTION}() returns jsonb
        language sql stable
        as $$
            select coalesce(nullif(current_setting('{claims_key}', true), ''), '{{}}')::jsonb
        $$
    """


def upgrade_statements(claims_key: str = "request.jwt.claims") -> list[str]:
    """SQL that installs the claims helper, enables RLS and creates every policy."""
    statements = [claims_function_sql(claims_key)]
    for table in PUBLIC_TABLES:
        statements.append(f"alter table {table} enable row level security")
    for table in TENANT_TABLES:
        statements.append(f"alter table {table} enable row level security")
        # Table owners are subject to policies too
        statements.append(f"alter table {table} force row level security")
    statements.extend(p.create_sql() for p in POLICIES)
    return statements


def downgrade_statements() -> list[str]:
    statements = [p.drop_sql() for p in reversed(POLICIES)]
    for table in reversed(TENANT_TABLES):
        statements.append(f"alter table {table} no force row level security")
        statements.append(f"alter table {table} disable row level security")
    for table in PUBLIC_TABLES:
        statements.append(f"alter table {table} disable row level security")
    statements.append(f"drop function if exists {CLAIMS_FUNCTION}()")
    return statements


def grant_statements(role: str) -> list[str]:
    """Privileges the RLS role needs; the policies still decide which rows."""
    statements = [
        f"grant usage on schema public to {role}",
        f"grant execute on function {CLAIMS_FUNCTION}() to {role}",
    ]
    for table in PUBLIC_TABLES:
        statements.append(f"grant select on {table} to {role}")
    for table in TENANT_TABLES:
        statements.append(f"grant select, insert, update, delete on {table} to {role}")
    return statements
