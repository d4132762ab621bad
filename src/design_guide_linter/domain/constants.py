"""Catalog-wide defaults. Overridable through [tool.design-guide]."""

TOOL_SECTION: str = "design-guide"

# Standard-library modules whose failure modes are treated as known.
DEFAULT_TRUSTED_MODULES: frozenset[str] = frozenset(
    {
        "Access",
        "Agent",
        "Application",
        "Atom",
        "Base",
        "Code",
        "Date",
        "DateTime",
        "Enum",
        "File",
        "Float",
        "Function",
        "GenServer",
        "IO",
        "Inspect",
        "Integer",
        "Kernel",
        "Keyword",
        "List",
        "Logger",
        "Map",
        "MapSet",
        "Module",
        "NaiveDateTime",
        "Path",
        "Process",
        "Range",
        "Regex",
        "Stream",
        "String",
        "System",
        "Task",
        "Time",
        "Tuple",
        "URI",
    }
)

DEFAULT_OPTION_PARAMETER_NAMES: tuple[str, ...] = ("opts", "options")
DEFAULT_GUARD_PREFIX: str = "is_"
DEFAULT_PREDICATE_SUFFIX: str = "?"
DEFAULT_MAX_WORKERS: int = 4

# Capability table the composition root supplies when pyproject.toml has none.
# Support base -> required capability and the call patterns (fnmatch globs
# over qualified call names) that show the capability is actually used.
DEFAULT_TEST_SUPPORT: dict[str, dict[str, object]] = {
    "ConnCase": {
        "capability": "web transport",
        "hallmarks": [
            "build_conn",
            "get",
            "post",
            "put",
            "patch",
            "delete",
            "json_response",
            "html_response",
            "text_response",
            "redirected_to",
            "*ConnTest.*",
        ],
    },
    "DataCase": {
        "capability": "persistent storage",
        "hallmarks": [
            "*Repo.*",
            "insert",
            "insert!",
            "insert_list",
            "*Factory.*",
            "*Ecto.*",
            "errors_on",
        ],
    },
}

# Accessor calls counted as one field-extraction hop.
FIELD_ACCESSORS: frozenset[str] = frozenset({"Map.get", "Map.fetch!", "Access.get"})

# Module functions that rewrite one key of a keyed container.
NESTED_UPDATE_MODULES: frozenset[str] = frozenset({"Map", "Keyword"})
NESTED_UPDATE_FUNCTIONS: frozenset[str] = frozenset(
    {"put", "put_new", "update", "update!", "delete", "merge", "replace!"}
)

# Behaviour callbacks whose success-tagged return is dictated by the caller.
CALLBACK_FUNCTIONS: frozenset[str] = frozenset(
    {
        "init",
        "start",
        "start_link",
        "child_spec",
        "handle_call",
        "handle_cast",
        "handle_info",
        "handle_continue",
        "handle_event",
        "handle_params",
        "mount",
        "update",
        "code_change",
    }
)
