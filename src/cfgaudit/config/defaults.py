"""Starter cfgaudit.toml template."""

CONFIG_FILENAME = "cfgaudit.toml"

DEFAULT_TOML = """\
# cfgaudit configuration
# Credentials are never read from this file: pass --user/--password or set
# CFGAUDIT_USER / CFGAUDIT_PASSWORD.

[checkpoints]
directory = "/dmgr/config/temp/download/cells/was90cell/repository/checkpoints"
prefix = "Delta-"

[audit]
log_path = "./audit.log"
cursor_path = ".last_processed_timestamp"

[schedule]
interval_minutes = 60
mode = "fixed_delay"      # fixed_delay | fixed_rate

[extractor]
kind = "wsadmin"          # wsadmin | archive_dir
wsadmin_path = "/opt/IBM/WebSphere/AppServer/bin"
conntype = "SOAP"         # SOAP | RMI | IPC | NONE
host = "localhost"
port = 8879
timeout_seconds = 600
# archive_dir = "."       # used when kind = "archive_dir"

[logging]
level = "info"            # debug | info | warning | error
format = "console"        # console | json
"""
