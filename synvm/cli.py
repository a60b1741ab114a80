"""
synvm - Command Line

    synvm run      - Execute a program image interactively
    synvm disasm   - Disassemble a program image
    synvm asm      - Assemble a one-line-per-instruction listing to an image

Examples:
    synvm run challenge.bin
    synvm run challenge.bin --trace --trace-file trace.log
    synvm run challenge.bin --input walkthrough.txt --no-debug-console
    synvm disasm challenge.bin --range 0-120
    synvm asm hello.lst -o hello.bin
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import DEFAULT_TRACE_FILE, MAX_ADDRESS
from .cpu.disasm import assemble_words, disassemble
from .debug.commands import DebugConsole
from .debug.tracer import Tracer
from .emu import Machine
from .errors import VMError
from .log_setup import setup_logging
from .mem.memory import AddressSpace, words_to_image

log = logging.getLogger(__name__)


def parse_range(text: str):
    """'START-END' (decimal or 0x) -> (start, end)."""
    start, sep, end = text.partition('-')
    if not sep:
        raise argparse.ArgumentTypeError(f"expected START-END, got {text!r}")
    try:
        return int(start, 0), int(end, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"bad range {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synvm",
        description="Word-addressed 22-instruction virtual machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="examples:" + __doc__.split("Examples:", 1)[1],
    )
    parser.add_argument("--version", action="version", version=f"synvm {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--log-file", help="Also write the full debug log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Execute a program image")
    p_run.add_argument("image", help="Program image (.bin)")
    p_run.add_argument("--trace", action="store_true",
                       help="Start with the execution tracer enabled")
    p_run.add_argument("--trace-file", default=str(DEFAULT_TRACE_FILE),
                       help=f"Trace output file (default: {DEFAULT_TRACE_FILE})")
    p_run.add_argument("--input", metavar="FILE",
                       help="Queue the lines of FILE as program input before starting")
    p_run.add_argument("--no-debug-console", action="store_true",
                       help="Read program input directly, without !commands")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a program image")
    p_dis.add_argument("image", help="Program image (.bin)")
    p_dis.add_argument("--range", type=parse_range, default=None,
                       help="Word address range START-END, e.g. 0-120")
    p_dis.add_argument("-o", "--output", help="Output file (default: stdout)")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble a listing to a program image")
    p_asm.add_argument("input", help="Listing, one instruction per line or ';' separated")
    p_asm.add_argument("-o", "--output", required=True, help="Output image (.bin)")

    return parser


# ══════════════════════════════════════════════
# Commands
# ══════════════════════════════════════════════

def cmd_run(args) -> int:
    space = AddressSpace()
    space.load_file(args.image)

    vm = Machine(space, stdout=sys.stdout)

    tracer = None
    if args.trace or not args.no_debug_console:
        tracer = Tracer(args.trace_file)
        vm.tracer = tracer
        if args.trace:
            tracer.start()

    if args.no_debug_console:
        vm.input_provider = input
    else:
        vm.input_provider = DebugConsole(vm, tracer=tracer)

    if args.input:
        for line in Path(args.input).read_text(encoding="utf-8").splitlines():
            vm.io.feed(line)

    try:
        reason = vm.run()
    except VMError as e:
        log.error("%s", e)
        log.debug("Machine state: %s", vm.display())
        return 1
    except EOFError:
        log.info("Input closed after %d instructions", vm.steps)
        return 0
    except KeyboardInterrupt:
        log.warning("Interrupted at pc=%d", vm.pc)
        return 130
    finally:
        sys.stdout.flush()
        if tracer is not None:
            tracer.close()

    log.info("Stopped: %s", reason.value)
    return 0


def cmd_disasm(args) -> int:
    data = Path(args.image).read_bytes()
    space = AddressSpace.from_image(data)
    if args.range is not None:
        start, end = args.range
    else:
        start, end = 0, min((len(data) + 1) // 2 - 1, MAX_ADDRESS)

    lines = [inst.format() for inst in disassemble(space, start, end)]
    text = '\n'.join(lines) + '\n'
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        log.info("Wrote %d lines to %s", len(lines), args.output)
    else:
        sys.stdout.write(text)
    return 0


def cmd_asm(args) -> int:
    source = Path(args.input).read_text(encoding="utf-8")
    try:
        words = assemble_words(source)
    except ValueError as e:
        log.error("%s", e)
        return 1
    Path(args.output).write_bytes(words_to_image(words))
    log.info("Assembled %d words to %s", len(words), args.output)
    return 0


COMMANDS = {
    "run": cmd_run,
    "disasm": cmd_disasm,
    "asm": cmd_asm,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 2

    if args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    setup_logging(level, args.log_file)

    try:
        return COMMANDS[args.command](args)
    except (OSError, VMError) as e:
        log.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
