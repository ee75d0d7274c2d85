#!/usr/bin/env python3
"""
Command line entrypoint invoked by OpenVPN script hooks.

    auth-user-pass-verify "/usr/local/bin/ovpn-radius auth" via-file
    client-connect        "/usr/local/bin/ovpn-radius acct"
    client-disconnect     "/usr/local/bin/ovpn-radius stop"

The process exit status is the only thing OpenVPN sees; each failure class
has its own code (see ovpn_radius.exceptions).
"""

from __future__ import annotations

import argparse
import getpass
import json
import sys

from ovpn_radius.config import PluginConfig, load_config
from ovpn_radius.credentials import read_credentials
from ovpn_radius.environment import log_environment
from ovpn_radius.exceptions import ConfigurationError, OvpnRadiusError
from ovpn_radius.lifecycle import SessionLifecycle
from ovpn_radius.radius.transport import RadclientTransport
from ovpn_radius.sessions import (
    IdentityContext,
    SessionStore,
    derive_session_key,
    open_store,
    reset_database,
)
from ovpn_radius.utils.logger import configure, get_logger, setup_logging

logger = get_logger(__name__)


def _lifecycle(config: PluginConfig, store: SessionStore) -> SessionLifecycle:
    return SessionLifecycle(
        config, store, RadclientTransport.from_settings(config.radius)
    )


def cmd_env(args: argparse.Namespace, config: PluginConfig) -> int:
    log_environment()
    return 0


def cmd_auth(args: argparse.Namespace, config: PluginConfig) -> int:
    logger.info(
        "Authenticating using credential file",
        event="ovpn.auth.start",
        path=args.credential_file,
    )
    credentials = read_credentials(args.credential_file)
    key = derive_session_key(IdentityContext.from_environ())
    with open_store(config.database) as store:
        _lifecycle(config, store).authenticate(
            key, credentials.username, credentials.password
        )
    return 0


def cmd_acct(args: argparse.Namespace, config: PluginConfig) -> int:
    identity = IdentityContext.from_environ()
    key = derive_session_key(identity)
    endpoint = identity.require_endpoint()
    with open_store(config.database) as store:
        _lifecycle(config, store).accounting_start(key, endpoint)
    return 0


def cmd_stop(args: argparse.Namespace, config: PluginConfig) -> int:
    key = derive_session_key(IdentityContext.from_environ())
    with open_store(config.database) as store:
        _lifecycle(config, store).accounting_stop(key)
    return 0


def cmd_sessions(args: argparse.Namespace, config: PluginConfig) -> int:
    with open_store(config.database) as store:
        records = store.list_all()
    for record in records:
        print(json.dumps(record.to_dict(), sort_keys=True))
    logger.info("Listed session records", event="ovpn.sessions.listed", count=len(records))
    return 0


def cmd_init_db(args: argparse.Namespace, config: PluginConfig) -> int:
    if args.reset:
        reset_database(config.database)
    with open_store(config.database):
        pass
    print(f"Session database ready: {config.database.db_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ovpn-radius", description="OpenVPN RADIUS authentication and accounting"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="configuration file (default: $OVPN_RADIUS_CONFIG or "
        "/etc/openvpn/plugin/ovpn-radius.conf)",
    )
    sub = parser.add_subparsers(dest="phase", required=True)

    p_env = sub.add_parser("env", help="log the environment passed by OpenVPN")
    p_env.set_defaults(func=cmd_env)

    p_auth = sub.add_parser("auth", help="auth-user-pass-verify hook")
    p_auth.add_argument("credential_file", nargs="?", help="username/password file")
    p_auth.set_defaults(func=cmd_auth)

    p_acct = sub.add_parser("acct", help="client-connect hook (Start + Interim-Update)")
    p_acct.set_defaults(func=cmd_acct)

    p_stop = sub.add_parser("stop", help="client-disconnect hook (Stop)")
    p_stop.set_defaults(func=cmd_stop)

    p_sessions = sub.add_parser("sessions", help="print stored session records")
    p_sessions.set_defaults(func=cmd_sessions)

    p_init = sub.add_parser("init-db", help="create the session database")
    p_init.add_argument(
        "--reset", action="store_true", help="delete existing sessions first"
    )
    p_init.set_defaults(func=cmd_init_db)
    return parser


def _load(args: argparse.Namespace) -> PluginConfig:
    config = load_config(args.config)
    try:
        setup_logging(config.logging)
    except OSError as exc:
        raise ConfigurationError(
            f"unable to open log file: {exc}",
            field="logging.log_file",
            value=config.logging.log_file,
        ) from exc
    return config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = _load(args)
    except ConfigurationError as exc:
        # No log file yet: report on stderr
        configure(handlers=None)
        logger.error(
            exc.message,
            event="ovpn.config.failed",
            error_code=exc.error_code,
            exit_code=exc.exit_code,
            field=exc.field,
        )
        return exc.exit_code

    try:
        logger.info(
            "Running phase",
            event="ovpn.main.start",
            phase=args.phase,
            user=getpass.getuser(),
        )
    except (KeyError, OSError):
        logger.info("Running phase", event="ovpn.main.start", phase=args.phase)

    try:
        code = args.func(args, config)
    except OvpnRadiusError as exc:
        logger.error(
            exc.message,
            event=f"ovpn.{args.phase}.failed",
            error_code=exc.error_code,
            exit_code=exc.exit_code,
            details=exc.details,
        )
        return exc.exit_code
    except Exception:
        logger.exception("Unexpected failure", event=f"ovpn.{args.phase}.crashed")
        return 1

    logger.info("Phase finished", event="ovpn.main.done", phase=args.phase)
    return code


if __name__ == "__main__":
    sys.exit(main())
