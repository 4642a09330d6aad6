#!/usr/bin/python3

from dexdeploy.cli import cli

if __name__ == "__main__":
    cli()
