#!/usr/bin/env python3
"""
arithc — arithmetic expression compiler CLI

Usage:
    arithc [input.xyz] [-o output] [-S] [--tokens | --ast | --ir | --run]
           [--target linux_x86_64] [--nasm PATH] [--ld PATH] [-v] [-q]

By default reads input.xyz, writes output.asm, then assembles and links
it with nasm and ld into ./output.

Examples:
    arithc expr.xyz -o calc          # build ./calc
    arithc expr.xyz -S -o calc.asm   # assembly only
    arithc expr.xyz --ir             # dump stack-machine IR
    arithc expr.xyz --run            # evaluate without nasm/ld

Exit codes:
    0  success
    1  invalid expression (lexer/parser error) or unreadable input
    2  internal compiler error
    3  assembler/linker failure
    4  arithmetic trap while evaluating with --run
"""

import argparse
import logging
import sys
from pathlib import Path

from arith_compiler import __version__, compile_source
from arith_compiler.ast_nodes import BinaryOp, Number
from arith_compiler.codegen import DEFAULT_TARGET, TARGET_PROFILES
from arith_compiler.errors import ArithmeticTrap
from arith_compiler.lexer import LexerError, tokenize
from arith_compiler.parser import DEFAULT_MAX_DEPTH, ParseError, parse
from arith_compiler.ir import lower
from arith_compiler.log_setup import setup_logging
from arith_compiler.toolchain import DEFAULT_ASSEMBLER, DEFAULT_LINKER, ToolchainError, build_executable
from arith_compiler.vm import StackMachine

logger = logging.getLogger("arith_compiler.cli")

EXIT_OK = 0
EXIT_COMPILE_ERROR = 1
EXIT_INTERNAL_ERROR = 2
EXIT_TOOLCHAIN_ERROR = 3
EXIT_TRAP = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arithc",
        description="Compile an integer arithmetic expression to an x86-64 Linux executable",
        epilog="Targets: " + ", ".join(TARGET_PROFILES.keys()),
    )
    parser.add_argument("input", nargs="?", default="input.xyz",
                        help="Input expression file (default: input.xyz)")
    parser.add_argument("-o", "--output", default=None,
                        help="Output executable (default: output), or assembly file with -S")
    parser.add_argument("-S", dest="asm_only", action="store_true",
                        help="Stop after writing assembly (stdout if no -o)")
    parser.add_argument("--target", default=DEFAULT_TARGET,
                        choices=list(TARGET_PROFILES.keys()),
                        help=f"Target profile (default: {DEFAULT_TARGET})")
    parser.add_argument("--nasm", default=DEFAULT_ASSEMBLER,
                        help="Assembler executable (default: nasm)")
    parser.add_argument("--ld", default=DEFAULT_LINKER,
                        help="Linker executable (default: ld)")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help=f"Parenthesis nesting limit (default: {DEFAULT_MAX_DEPTH})")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Log progress to stderr (-vv for debug detail)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--version", action="version",
                        version=f"arithc {__version__}")

    dump = parser.add_mutually_exclusive_group()
    dump.add_argument("--tokens", action="store_true",
                      help="Dump token stream and exit (debug)")
    dump.add_argument("--ast", action="store_true",
                      help="Dump AST and exit (debug)")
    dump.add_argument("--ir", action="store_true",
                      help="Dump stack-machine IR and exit (debug)")
    dump.add_argument("--run", action="store_true",
                      help="Evaluate on the reference stack machine and print the result")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    # Read input
    try:
        source = Path(args.input).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return EXIT_COMPILE_ERROR
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return EXIT_COMPILE_ERROR

    logger.info("Input:  %s", args.input)
    logger.info("Target: %s (%s)", args.target, TARGET_PROFILES[args.target]["description"])

    try:
        if args.tokens:
            print(compile_source(source, output="tokens"))
            return EXIT_OK

        if args.ast:
            _print_ast(parse(tokenize(source), max_depth=args.max_depth))
            return EXIT_OK

        if args.ir:
            print(compile_source(source, output="ir", max_depth=args.max_depth))
            return EXIT_OK

        if args.run:
            vm = StackMachine()
            vm.run(lower(parse(tokenize(source), max_depth=args.max_depth)))
            print(vm.output)
            return EXIT_OK

        asm_text = compile_source(source, target=args.target, max_depth=args.max_depth)

        if args.asm_only:
            if args.output:
                Path(args.output).write_text(asm_text + "\n", encoding="utf-8")
                logger.info("Output: %s", args.output)
            else:
                print(asm_text)
            return EXIT_OK

        output = Path(args.output or "output")
        build_executable(asm_text, output, target=args.target,
                         assembler=args.nasm, linker=args.ld)
        print(f"Compilation complete. Executable '{output}' created.")
        return EXIT_OK

    except LexerError as e:
        print(f"Lexer error: {e}", file=sys.stderr)
        return EXIT_COMPILE_ERROR
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return EXIT_COMPILE_ERROR
    except ToolchainError as e:
        print(f"Toolchain error: {e}", file=sys.stderr)
        return EXIT_TOOLCHAIN_ERROR
    except ArithmeticTrap as e:
        print(f"Runtime trap: {e}", file=sys.stderr)
        return EXIT_TRAP
    except Exception as e:
        print(f"Internal compiler error: {e}", file=sys.stderr)
        logger.debug("Traceback", exc_info=True)
        return EXIT_INTERNAL_ERROR


def _print_ast(root):
    """Pretty-print an AST node tree (debug helper)."""
    stack = [(root, 0, "")]
    while stack:
        node, indent, label = stack.pop()
        prefix = "  " * indent + label
        if isinstance(node, Number):
            print(f"{prefix}Number: {node.value}")
        elif isinstance(node, BinaryOp):
            print(f"{prefix}BinaryOp: {node.op}  (L{node.line}:{node.col})")
            stack.append((node.right, indent + 1, "right: "))
            stack.append((node.left, indent + 1, "left: "))


if __name__ == "__main__":
    sys.exit(main())
