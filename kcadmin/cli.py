"""Command-line wrapper around kcadmin.core.keycloak services.

Examples:
    kcadmin --realm demo get-user --username alice
    kcadmin --realm demo effective-users --role analyst
    kcadmin --realm demo list-users --offset 0 --limit 50
"""
from __future__ import annotations
import argparse
import asyncio
import dataclasses
import json
import logging
import os
import sys
from typing import Any

from kcadmin.config import load_settings
from kcadmin.core.keycloak import (
    KeycloakAdmin,
    KeycloakError,
    User,
    get_service_account_token,
)
from kcadmin.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    if dataclasses.is_dataclass(value):
        data = dataclasses.asdict(value)
        data.pop("credentials", None)
        return data
    return value


def _emit(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kcadmin", description="Keycloak users, groups and roles")
    parser.add_argument("--kc-url", default=os.environ.get("KEYCLOAK_URL"))
    parser.add_argument("--auth-realm", default=os.environ.get("KEYCLOAK_SERVICE_REALM"))
    parser.add_argument("--svc-client-id", default=os.environ.get("KEYCLOAK_SERVICE_CLIENT_ID"))
    parser.add_argument("--svc-client-secret", default=os.environ.get("KEYCLOAK_SERVICE_CLIENT_SECRET"))
    parser.add_argument("--realm", default=os.environ.get("KEYCLOAK_REALM"))

    sub = parser.add_subparsers(dest="cmd")

    gu = sub.add_parser("get-user")
    gu.add_argument("--username", required=True)

    lu = sub.add_parser("list-users")
    lu.add_argument("--offset", type=int, default=0)
    lu.add_argument("--limit", type=int, default=None)

    cu = sub.add_parser("create-user")
    cu.add_argument("--username", required=True)
    cu.add_argument("--email", required=True)
    cu.add_argument("--first", required=True)
    cu.add_argument("--last", required=True)
    cu.add_argument("--password")
    cu.add_argument("--temporary-password", action="store_true")
    cu.add_argument("--disabled", action="store_true")

    du = sub.add_parser("delete-user")
    du.add_argument("--username", required=True)

    gg = sub.add_parser("get-group")
    gg.add_argument("--name", required=True)

    cg = sub.add_parser("create-group")
    cg.add_argument("--name", required=True)
    cg.add_argument("--tenant", action="store_true", help="Create the group as a tenant")

    dg = sub.add_parser("delete-group")
    dg.add_argument("--name", required=True)

    er = sub.add_parser("effective-users")
    er.add_argument("--role", required=True)

    return parser


async def run_command(admin: KeycloakAdmin, realm: str, args: argparse.Namespace) -> Any:
    """Dispatch one parsed command to the matching service call."""
    if args.cmd == "get-user":
        return await admin.users.get_user(realm, args.username)
    if args.cmd == "list-users":
        return await admin.users.list_users(realm, offset=args.offset, limit=args.limit)
    if args.cmd == "create-user":
        user = User(
            username=args.username,
            email=args.email,
            first_name=args.first,
            last_name=args.last,
            enabled=not args.disabled,
        )
        if args.password:
            user.with_password(args.password, temporary=args.temporary_password)
        return await admin.users.create_user(realm, user)
    if args.cmd == "delete-user":
        return {"deleted": await admin.users.delete_user(realm, args.username)}
    if args.cmd == "get-group":
        return await admin.groups.get_group(realm, args.name)
    if args.cmd == "create-group":
        return await admin.groups.create_group(realm, args.name, as_tenant=args.tenant)
    if args.cmd == "delete-group":
        return {"deleted": await admin.groups.delete_group(realm, args.name)}
    if args.cmd == "effective-users":
        return await admin.effective_roles.get_effective_users(realm, args.role)
    raise ValueError(f"Unknown command: {args.cmd}")


async def _run(config, token: str, realm: str, args: argparse.Namespace) -> Any:
    async with KeycloakAdmin.from_settings(config, token) as admin:
        return await run_command(admin, realm, args)


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    # Before load_settings so its mode messages are emitted
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    try:
        config = load_settings(keycloak_url=args.kc_url, keycloak_service_client_id=args.svc_client_id)
    except RuntimeError as e:
        parser.error(str(e))
    auth_realm = args.auth_realm or config.keycloak_service_realm
    realm = args.realm or config.keycloak_realm

    secret = args.svc_client_secret
    if not secret:
        try:
            secret = config.service_client_secret_resolved
        except ValueError:
            parser.error("Missing service account secret")

    try:
        token = get_service_account_token(
            config.keycloak_url,
            auth_realm,
            config.keycloak_service_client_id,
            secret,
            timeout=config.request_timeout,
        )
        result = asyncio.run(_run(config, token, realm, args))
    except KeycloakError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)

    _emit(result)


if __name__ == "__main__":
    main()
