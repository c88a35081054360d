"""Starter .patchnorm.toml template."""

CONFIG_FILENAME = ".patchnorm.toml"

DEFAULT_TOML = """\
# patchnorm configuration
version = "1.0"

[backend]
timeout = 30              # seconds allowed per git command
detect_renames = true

[output]
format = "terminal"       # terminal | json | yaml
show_body = false

[logging]
level = "WARNING"         # DEBUG | INFO | WARNING | ERROR
"""
