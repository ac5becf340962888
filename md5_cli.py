"""Command-line front end for the streaming MD5 engine.

Usage:
    md5-engine "message"
    md5-engine -f path/to/file [path/to/other ...]

Without flags the single argument is hashed as the bytes it arrived as
(UTF-8 text in the usual case). With `-f` every following argument names a
file whose raw bytes are streamed through the engine; one
`<hexdigest>  <path>` line is printed per file.
"""
import argparse
import os
import sys

from md5 import MD5

CHUNK_SIZE = 1 << 16

OPTIONS = ("-f", "--file", "-h", "--help", "--")


def hash_stream(stream, chunk_size=CHUNK_SIZE):
    """Return the hex digest of everything readable from a binary stream."""
    md5 = MD5()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        md5.update(chunk)
    return md5.finalize().hex()


def build_parser():
    """Return the argument parser for the file and message modes."""
    parser = argparse.ArgumentParser(
        prog="md5-engine",
        description="Print the MD5 digest of a message or of files.")
    parser.add_argument("-f", "--file", action="store_true",
                        help="treat the arguments as file paths")
    parser.add_argument("inputs", nargs="*", metavar="INPUT")
    return parser


def main(argv=None):
    """CLI entry point; returns the process exit status.

    Options are only recognized as the first argument, so a lone message
    that starts with a dash is hashed as is (`--` also ends the options).
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    if len(argv) == 1 and argv[0] not in OPTIONS:
        messages, file_mode = argv, False
    else:
        try:
            args = parser.parse_args(argv)
        except SystemExit as e:
            return e.code
        messages, file_mode = args.inputs, args.file

    if not messages:
        parser.print_usage(sys.stderr)
        return 1

    if file_mode:
        status = 0
        for filename in messages:
            try:
                with open(filename, "rb") as f:
                    digest_hex = hash_stream(f)
            except OSError as e:
                sys.stderr.write(f"Error reading file '{filename}': {e}\n")
                status = 1
                continue
            print(f"{digest_hex}  {filename}")
        return status

    if len(messages) != 1:
        parser.print_usage(sys.stderr)
        return 1

    # fsencode gives back the exact argv bytes, even when they are not UTF-8
    print(MD5().calculate(os.fsencode(messages[0])).hex())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
