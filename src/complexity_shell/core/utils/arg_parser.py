# src/complexity_shell/core/utils/arg_parser.py
import argparse


class NoExitArgumentParser(argparse.ArgumentParser):
    """Argument parser that raises exceptions instead of exiting the process."""
    def error(self, message):
        print(f"❌ Argument Error: {message}")
        raise ValueError(message)

    def exit(self, status=0, message=None):
        if message:
            print(message)
        raise ValueError("Help displayed")
