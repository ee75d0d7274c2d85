"""RADIUS attribute names and radclient output markers.

radclient takes attributes by their FreeRADIUS dictionary names, so names
rather than RFC type codes are used throughout.
"""

# Standard attribute names (RFC 2865 / RFC 2866 / RFC 2869)
ATTR_USER_NAME = "User-Name"
ATTR_USER_PASSWORD = "User-Password"
ATTR_NAS_IP_ADDRESS = "NAS-IP-Address"
ATTR_SERVICE_TYPE = "Service-Type"
ATTR_FRAMED_PROTOCOL = "Framed-Protocol"
ATTR_FRAMED_IP_ADDRESS = "Framed-IP-Address"
ATTR_CLASS = "Class"
ATTR_CALLING_STATION_ID = "Calling-Station-Id"
ATTR_NAS_IDENTIFIER = "NAS-Identifier"
ATTR_ACCT_STATUS_TYPE = "Acct-Status-Type"
ATTR_ACCT_SESSION_ID = "Acct-Session-Id"
ATTR_ACCT_TERMINATE_CAUSE = "Acct-Terminate-Cause"
ATTR_NAS_PORT_TYPE = "NAS-Port-Type"
ATTR_MESSAGE_AUTHENTICATOR = "Message-Authenticator"

# radclient pseudo-attribute: expected reply code
ATTR_RESPONSE_PACKET_TYPE = "Response-Packet-Type"

# Attribute values
ACCESS_ACCEPT = "Access-Accept"
FRAMED_PROTOCOL_PPP = "PPP"
MESSAGE_AUTHENTICATOR_PLACEHOLDER = "0x00"

# Accounting status types (RFC 2866 §5.1)
ACCT_STATUS_START = "Start"
ACCT_STATUS_INTERIM_UPDATE = "Interim-Update"
ACCT_STATUS_STOP = "Stop"

# Termination causes (RFC 2866 §5.10)
TERMINATE_CAUSE_USER_REQUEST = "User-Request"

# Acct-Session-Id values are drawn from [0, ACCT_SESSION_ID_MAX)
ACCT_SESSION_ID_MAX = 9999

# radclient command verbs
COMMAND_AUTH = "auth"
COMMAND_ACCT = "acct"

# Line prefixes in `radclient -x` output
MARKER_ACCESS_ACCEPT = "Received Access-Accept"
MARKER_ACCOUNTING_RESPONSE = "Received Accounting-Response"
