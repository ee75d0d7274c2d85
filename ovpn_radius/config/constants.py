"""Configuration constants and defaults."""

# Section names
SECTION_SERVER = "server"
SECTION_LOGGING = "logging"
SECTION_RADIUS = "radius"
SECTION_DATABASE = "database"

# Secrets (environment overrides the file)
ENV_RADIUS_AUTH_SECRET = "OVPN_RADIUS_AUTH_SECRET"
ENV_RADIUS_ACCT_SECRET = "OVPN_RADIUS_ACCT_SECRET"

# Meta-configuration
ENV_OVPN_RADIUS_CONFIG = "OVPN_RADIUS_CONFIG"
DEFAULT_CONFIG_FILE = "/etc/openvpn/plugin/ovpn-radius.conf"

DEFAULT_DB_PATH = "/etc/openvpn/plugin/db/ovpn-radius.db"
DEFAULT_RADCLIENT_PATH = "/usr/bin/radclient"

# Default values
DEFAULTS = {
    SECTION_SERVER: {
        "port_type": "Virtual",
        "service_type": "Framed-User",
    },
    SECTION_LOGGING: {
        "log_level": "INFO",
        "log_rotation": "false",
        "max_log_size": "10MB",
        "backup_count": "5",
    },
    SECTION_RADIUS: {
        "authentication_only": "false",
        "radclient_path": DEFAULT_RADCLIENT_PATH,
        "radclient_timeout": "0",
    },
    SECTION_DATABASE: {
        "db_path": DEFAULT_DB_PATH,
        "lock_timeout": "10",
        "pool_size": "5",
        "max_overflow": "5",
        "busy_timeout_ms": "10000",
    },
}

# Keys that map an environment variable onto (section, key)
ENV_OVERRIDES = {
    ENV_RADIUS_AUTH_SECRET: (SECTION_RADIUS, "auth_secret"),
    ENV_RADIUS_ACCT_SECRET: (SECTION_RADIUS, "acct_secret"),
}
