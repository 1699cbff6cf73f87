import importlib
import sys

SUBCOMMANDS = {
    "create": "clusterspec.cli.create_cluster",
    "get": "clusterspec.cli.get",
}


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in SUBCOMMANDS:
        print(f"Usage: clusterctl <{'|'.join(SUBCOMMANDS)}> [args...]")
        sys.exit(1)

    module = importlib.import_module(SUBCOMMANDS[sys.argv[1]])
    sys.exit(module.main(sys.argv[2:]))
