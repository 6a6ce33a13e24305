# Ethan Doughty
# sasmode.py
"""Command-line interface for sasmode, the SAS editing core."""

import argparse
import time
from pathlib import Path
from typing import Optional

from frontend.buffer import SourceBuffer
from frontend.lexer import iter_tokens
from analysis import check_buffer, locate_enclosing_block, block_extent, statement_bounds
from indent import IndentSettings, reindent


def _print_block(buffer: SourceBuffer, offset: int) -> None:
    block = locate_enclosing_block(buffer, offset)
    print(f"Block: {block.describe()}")
    if block.failed:
        return
    start, end = block_extent(buffer, block)
    print(f"  Extent: [{start}, {end}) lines {buffer.line_of(start) + 1}-"
          f"{buffer.line_of(max(start, end - 1)) + 1}")
    print(buffer.substring(start, end))


def _print_statement(buffer: SourceBuffer, offset: int) -> None:
    start, end = statement_bounds(buffer, offset)
    print(f"Statement: [{start}, {end})")
    print(buffer.substring(start, end))


def _print_tokens(buffer: SourceBuffer) -> None:
    for tok in iter_tokens(buffer):
        line = buffer.line_of(tok.start) + 1
        print(f"  {line:4d}  {tok.kind.value:<14} {tok.value!r}")


def run_file(file_path: str, block: Optional[int] = None, statement: Optional[int] = None,
             indent: bool = False, tokens: bool = False, check: bool = False,
             basic_offset: int = 4, benchmark: bool = False) -> int:
    """Run the requested queries against one SAS file.

    Args:
        file_path: Path to .sas file
        block: Offset for an enclosing-block query
        statement: Offset for a statement-bounds query
        indent: If True, print the reindented file
        tokens: If True, print every classified token
        check: If True, print structural diagnostics (exit 1 if any)
        basic_offset: Columns per indentation level
        benchmark: If True, print timing

    Returns:
        Exit code (0 for success, 1 for error)
    """
    path = Path(file_path)
    if not path.exists():
        print(f"ERROR: file not found: {file_path}")
        return 1

    t_start = time.perf_counter()
    src = path.read_text(errors='replace')
    buffer = SourceBuffer(src)
    rc = 0

    try:
        for offset in (block, statement):
            if offset is not None:
                buffer.check_offset(offset)
    except IndexError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"=== {file_path} ===")
    if tokens:
        print("Tokens:")
        _print_tokens(buffer)
    if block is not None:
        _print_block(buffer, block)
    if statement is not None:
        _print_statement(buffer, statement)
    if indent:
        print(reindent(buffer, IndentSettings(basic_offset=basic_offset)))
    if check:
        diags = check_buffer(buffer)
        if not diags:
            print("No structural warnings.")
        else:
            print("Warnings:")
            for d in diags:
                print("  -", d)
            rc = 1

    if benchmark:
        elapsed_ms = (time.perf_counter() - t_start) * 1000
        print(f"\n--- Benchmark ({buffer.line_count} lines) ---")
        print(f"  Total:     {elapsed_ms:7.1f}ms")

    return rc


def run_tests(benchmark: bool = False) -> int:
    """Run the fixture and structural test suite.

    Returns:
        Exit code (0 for all tests passed, 1 otherwise)
    """
    import run_all_tests

    t_start = time.perf_counter()
    result = run_all_tests.main(return_code=True)
    if benchmark:
        print(f"\n--- Benchmark ---")
        print(f"  Fixtures:  {len(run_all_tests.TEST_FILES)}")
        print(f"  Total:     {(time.perf_counter() - t_start) * 1000:.0f}ms")
    return result


def main() -> int:
    """Main entry point for the sasmode CLI tool.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        prog="sasmode",
        description="sasmode: block location and indentation for SAS source"
    )
    parser.add_argument("file", nargs="?", help="SAS .sas file")
    parser.add_argument("--tests", action="store_true", help="Run test suite")
    parser.add_argument("--block", type=int, metavar="OFFSET",
                        help="Print the block enclosing OFFSET")
    parser.add_argument("--statement", type=int, metavar="OFFSET",
                        help="Print the statement containing OFFSET")
    parser.add_argument("--indent", action="store_true",
                        help="Print the file reindented")
    parser.add_argument("--tokens", action="store_true",
                        help="Print the classified tokens")
    parser.add_argument("--check", action="store_true",
                        help="Report unterminated and malformed blocks")
    parser.add_argument("--basic-offset", type=int, default=4, metavar="N",
                        help="Columns per indentation level (default 4)")
    parser.add_argument("--benchmark", action="store_true",
                        help="Print timing")
    args = parser.parse_args()

    if args.tests:
        return run_tests(benchmark=args.benchmark)

    if not args.file:
        parser.print_help()
        return 1

    if args.basic_offset < 0:
        parser.error("--basic-offset must be non-negative")

    nothing_requested = not (args.indent or args.tokens or args.check
                             or args.block is not None or args.statement is not None)
    return run_file(args.file, block=args.block, statement=args.statement,
                    indent=args.indent, tokens=args.tokens,
                    check=args.check or nothing_requested,
                    basic_offset=args.basic_offset, benchmark=args.benchmark)


if __name__ == "__main__":
    raise SystemExit(main())
