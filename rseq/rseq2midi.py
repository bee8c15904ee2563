#!/usr/bin/env python3
"""
rseq2midi
Converts RSEQ game sequence files to Standard MIDI Files.
"""

import sys
from typing import List, Optional

from rseq_extractor import RseqConverter
from seq_base import ConversionOptions


def print_usage():
    print("rseq2midi")
    print("Usage: rseq2midi [options] file1.rseq [file2.rseq [...]]")
    print()
    print("Options:")
    print("  -i, --ignore-jumps      - Ignore jump commands (continue past them)")
    print("  -d, --debug-ctrls       - Write MIDI controllers for otherwise silent commands")
    print("  --ring-out              - Let notes sounding at track end play out their full duration")
    print("  -l, --listing          - Also write a .txt listing of the decoded commands")
    print("  -o, --output-dir <dir>  - Write output files to <dir> instead of next to the input")
    print("  -c, --config <file>     - Load options from a YAML config file")
    print("  --max-steps <n>         - Per-track command budget (0 = unlimited)")
    print()
    print("Examples:")
    print("  rseq2midi seq_title.rseq")
    print("  rseq2midi -i -d -o mid *.rseq")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]

    overrides = {}
    config_file = None
    files = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in ('-i', '--ignore-jumps'):
            overrides['ignore_jumps'] = True
        elif arg in ('-d', '--debug-ctrls'):
            overrides['debug_controllers'] = True
        elif arg == '--ring-out':
            overrides['ring_out_notes'] = True
        elif arg in ('-l', '--listing'):
            overrides['write_disassembly'] = True
        elif arg in ('-o', '--output-dir') and i + 1 < len(argv):
            overrides['output_dir'] = argv[i + 1]
            i += 1
        elif arg in ('-c', '--config') and i + 1 < len(argv):
            config_file = argv[i + 1]
            i += 1
        elif arg == '--max-steps' and i + 1 < len(argv):
            try:
                overrides['max_steps'] = int(argv[i + 1], 0)
            except ValueError:
                print(f"Error: --max-steps needs a number, got {argv[i + 1]!r}")
                return 1
            i += 1
        elif arg in ('-h', '--help'):
            print_usage()
            return 0
        else:
            files.append(arg)
        i += 1

    if not files:
        print_usage()
        return 1

    try:
        options = ConversionOptions.from_yaml(config_file) if config_file else ConversionOptions()
    except (OSError, ValueError, TypeError) as e:
        print(f"Error: could not load config {config_file}: {e}")
        return 1
    for key, value in overrides.items():
        setattr(options, key, value)

    converter = RseqConverter(options)
    converter.convert_all(files)
    return 0


if __name__ == '__main__':
    sys.exit(main())
