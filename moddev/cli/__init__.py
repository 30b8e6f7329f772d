"""CLI subcommands for moddev."""
