import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ovpn_radius.exceptions import ConfigurationError
from ovpn_radius.sessions.keys import IdentityContext, derive_session_key


def _auth_env(ip: str, port: str) -> dict[str, str]:
    # auth-user-pass-verify: TLS not finished, no trusted pair, no pool address
    return {"untrusted_ip": ip, "untrusted_port": port}


def _acct_env(ip: str, port: str) -> dict[str, str]:
    return {
        "untrusted_ip": ip,
        "untrusted_port": port,
        "trusted_ip": "192.168.1.12",
        "trusted_port": "1194",
        "ifconfig_pool_remote_ip": "172.17.1.6",
    }


def test_key_format_is_address_colon_port():
    identity = IdentityContext(untrusted_ip="10.0.0.5", untrusted_port="4000")
    assert derive_session_key(identity) == "10.0.0.5:4000"


def test_key_uses_values_verbatim():
    identity = IdentityContext(untrusted_ip="2001:DB8::1", untrusted_port="0443")
    assert derive_session_key(identity) == "2001:DB8::1:0443"


def test_auth_and_accounting_phases_derive_identical_key():
    auth_key = derive_session_key(
        IdentityContext.from_environ(_auth_env("192.168.1.50", "55606"))
    )
    acct_key = derive_session_key(
        IdentityContext.from_environ(_acct_env("192.168.1.50", "55606"))
    )
    assert auth_key == acct_key == "192.168.1.50:55606"


def test_trusted_pair_and_pool_address_never_form_the_key():
    acct = IdentityContext.from_environ(_acct_env("192.168.1.50", "55606"))
    key = derive_session_key(acct)
    assert key != f"{acct.trusted_ip}:{acct.trusted_port}"
    assert acct.pool_remote_ip not in key


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(
    ip=st.ip_addresses().map(str),
    port=st.integers(min_value=1, max_value=65535).map(str),
)
def test_key_invariant_across_phases(ip, port):
    auth_key = derive_session_key(IdentityContext.from_environ(_auth_env(ip, port)))
    acct_env = _acct_env(ip, port)
    acct_key = derive_session_key(IdentityContext.from_environ(acct_env))
    trusted_key = f"{acct_env['trusted_ip']}:{acct_env['trusted_port']}"
    assert auth_key == acct_key
    if (ip, port) != (acct_env["trusted_ip"], acct_env["trusted_port"]):
        assert acct_key != trusted_key


@pytest.mark.parametrize(
    "env",
    [
        {},
        {"untrusted_ip": "10.0.0.5"},
        {"untrusted_port": "4000"},
        {"untrusted_ip": "", "untrusted_port": "4000"},
        {"trusted_ip": "10.0.0.5", "trusted_port": "4000"},
    ],
)
def test_missing_untrusted_signal_is_a_configuration_error(env):
    with pytest.raises(ConfigurationError):
        derive_session_key(IdentityContext.from_environ(env))


def test_from_environ_reads_process_environment(monkeypatch):
    monkeypatch.setenv("untrusted_ip", "10.1.1.1")
    monkeypatch.setenv("untrusted_port", "5555")
    monkeypatch.setenv("ifconfig_pool_remote_ip", "10.8.0.9")
    identity = IdentityContext.from_environ()
    assert derive_session_key(identity) == "10.1.1.1:5555"
    assert identity.require_endpoint() == "10.8.0.9"


def test_require_endpoint_without_pool_address():
    with pytest.raises(ConfigurationError) as exc:
        IdentityContext(untrusted_ip="10.0.0.5", untrusted_port="1").require_endpoint()
    assert exc.value.field == "ifconfig_pool_remote_ip"
