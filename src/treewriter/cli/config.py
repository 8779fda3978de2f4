"""Handlers for 'treewriter config' commands."""

from treewriter.cli._common import error, output_json, output_result
from treewriter.config import config_path, read_config, write_config_key


def _split_key(dotted: str, json_mode: bool) -> tuple[str, str]:
    section, _, key = dotted.partition(".")
    if not section or not key:
        error(f"Key '{dotted}' must look like section.key, e.g. ai.model-name", json_mode)
    return section, key.replace("-", "_")


def config_get(args) -> int:
    """Show one key, or the whole config when no key is given."""
    config = read_config(args.config)

    if not args.key:
        if args.json:
            output_json(config)
        else:
            for section, items in config.items():
                print(f"[{section}]")
                for key, value in items.items():
                    shown = "********" if key == "api_key" and value else value
                    print(f"{key.replace('_', '-')} = {shown}")
        return 0

    section, key = _split_key(args.key, args.json)
    if key not in config.get(section, {}):
        error(f"Key '{args.key}' is not set.", args.json)
    value = config[section][key]
    output_result({"key": args.key, "value": value}, str(value), args.json)
    return 0


def config_set(args) -> int:
    """Write one key to the config file."""
    section, key = _split_key(args.key, args.json)
    try:
        write_config_key(args.config, section, key, args.value)
    except OSError as e:
        error(f"Cannot write config: {e}", args.json)

    target = args.config or config_path()
    output_result({"key": args.key, "value": args.value}, f"Set {args.key} in {target}", args.json)
    return 0
