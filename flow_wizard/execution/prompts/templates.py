"""
Template name constants.

Pure constants - no I/O or file system knowledge.
"""


class Template:
    """Template name constants. Use these instead of raw strings."""

    WELCOME = "welcome"
    REPROMPT_CHOICE = "reprompt_choice"
    REPROMPT_CAPTURE = "reprompt_capture"
    INVALID_FIELDS = "invalid_fields"
    GENERAL_HELP = "general_help"
    UNRECOGNIZED = "unrecognized"
    PROVISIONING_FAILED = "provisioning_failed"
    JUMP_BACK = "jump_back"
