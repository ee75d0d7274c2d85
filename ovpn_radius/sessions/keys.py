"""Session key policy.

OpenVPN runs ``auth-user-pass-verify``, ``client-connect`` and
``client-disconnect`` as separate processes with different environments.
Only the client-asserted origin (``untrusted_ip``/``untrusted_port``) is
present with the same value in all of them: ``trusted_ip``/``trusted_port``
are not set before the TLS handshake completes, and the pool address is
assigned later still. The key is therefore always built from the untrusted
pair.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from ovpn_radius.exceptions import ConfigurationError

ENV_UNTRUSTED_IP = "untrusted_ip"
ENV_UNTRUSTED_PORT = "untrusted_port"
ENV_TRUSTED_IP = "trusted_ip"
ENV_TRUSTED_PORT = "trusted_port"
ENV_POOL_REMOTE_IP = "ifconfig_pool_remote_ip"


@dataclass(frozen=True)
class IdentityContext:
    """Identity signals OpenVPN exports to a script invocation."""

    untrusted_ip: str | None = None
    untrusted_port: str | None = None
    trusted_ip: str | None = None
    trusted_port: str | None = None
    pool_remote_ip: str | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> IdentityContext:
        env = os.environ if environ is None else environ
        return cls(
            untrusted_ip=env.get(ENV_UNTRUSTED_IP) or None,
            untrusted_port=env.get(ENV_UNTRUSTED_PORT) or None,
            trusted_ip=env.get(ENV_TRUSTED_IP) or None,
            trusted_port=env.get(ENV_TRUSTED_PORT) or None,
            pool_remote_ip=env.get(ENV_POOL_REMOTE_IP) or None,
        )

    def require_endpoint(self) -> str:
        """Return the tunnel-assigned address or fail."""
        if not self.pool_remote_ip:
            raise ConfigurationError(
                f"{ENV_POOL_REMOTE_IP} is not set; no tunnel address to account",
                field=ENV_POOL_REMOTE_IP,
            )
        return self.pool_remote_ip


def derive_session_key(identity: IdentityContext) -> str:
    """Return ``"<untrusted_ip>:<untrusted_port>"`` for ``identity``.

    Values are used verbatim. Raises ConfigurationError when either signal
    is absent, since a partial key could collide across clients.
    """
    if not identity.untrusted_ip:
        raise ConfigurationError(
            f"{ENV_UNTRUSTED_IP} is not set", field=ENV_UNTRUSTED_IP
        )
    if not identity.untrusted_port:
        raise ConfigurationError(
            f"{ENV_UNTRUSTED_PORT} is not set", field=ENV_UNTRUSTED_PORT
        )
    return f"{identity.untrusted_ip}:{identity.untrusted_port}"
