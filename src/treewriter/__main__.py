"""Entry point for treewriter CLI."""

import logging
import sys
from pathlib import Path

NOUNS = {"project", "card", "column", "config", "generate"}


def main():
    # No subcommand or non-noun argument = TUI mode
    if len(sys.argv) < 2 or (sys.argv[1] not in NOUNS and not sys.argv[1].startswith("-")):
        from treewriter.config import read_config
        from treewriter.model.project import Workspace
        from treewriter.storage import JsonFileStore
        from treewriter.ui import WriterApp

        config = read_config()
        default_dir = config["treewriter"]["data_dir"]
        path = sys.argv[1] if len(sys.argv) > 1 and not sys.argv[1].startswith("-") else default_dir
        data_dir = Path(path).expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)

        # TUI owns the terminal
        logging.basicConfig(
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            filename=data_dir / "treewriter.log",
            level=logging.INFO,
        )
        workspace = Workspace.load(JsonFileStore(data_dir))
        app = WriterApp(workspace, config)
        app.run()
        return

    # Global --help before noun
    if sys.argv[1] in ("-h", "--help"):
        from treewriter.cli import build_parser

        build_parser().parse_args()
        return

    from treewriter.cli import build_parser

    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
