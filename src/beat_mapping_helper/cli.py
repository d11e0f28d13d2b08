from argparse import ArgumentParser, RawDescriptionHelpFormatter
from json import JSONDecodeError
import logging
from pathlib import Path

from . import difficulty, optimizer, utils, __version__
from .animation import BeatmapError
from .beatmap_format import MapVersion

def get_parser():
    parser = ArgumentParser(
        formatter_class=RawDescriptionHelpFormatter,
        prog=f"python3 -m {__package__}.{Path(__file__).stem}",
        description='\n'.join([
            "Read a difficulty file (v2 or v3), optionally optimize all animations and write it in the chosen version.",
            "",
            "Most number values accept decimals, percentages and fractions (ie '0.25', '25%' or '1/4')",
            "Vectors are specified as comma separated values, ie '0.1,0.1,0.5'",
            "",
            "Optimizing removes keyframes that can be recreated by interpolation within the tolerance.",
            "This applies to every animated object, custom event and point definition.",
        ]),
        epilog=f"Version: {__version__}",
    )

    parser.add_argument("input", type=Path, help="Difficulty file to read")
    parser.add_argument("output", type=Path, nargs="?", help="File to write, defaults to overwriting the input")
    parser.add_argument("--version", choices=[v.value for v in MapVersion], help="Output version, defaults to the version of the input")
    parser.add_argument("--precision", type=int, metavar="DIGITS", help="Round all numbers to this many decimal places")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print debug output")

    optimize_group = parser.add_argument_group("optimization")
    optimize_group.add_argument("--optimize", type=utils.parse_number, metavar="TOLERANCE", help="Optimize animations, allowing this much deviation per value")
    optimize_group.add_argument("--axis-tolerance", type=utils.parse_vector, metavar="T1,T2,...", help="Tolerance per value axis, overrides --optimize for the given axes. Implies optimizing.")
    optimize_group.add_argument("--remove-modifiers", action="store_false", dest="keep_modifiers", help="Also remove keyframes that have an easing, spline or flag")

    return parser

def abort(reason: str):
    if __name__ == "__main__":
        print("ERROR: " + reason)
        exit(1)
    else:
        raise RuntimeError(reason)

def main(options):
    logging.basicConfig(level=logging.DEBUG if options.verbose else logging.INFO, format="%(levelname)s: %(message)s")
    if options.precision is not None and options.precision < 0:
        abort("Precision must not be negative")

    try:
        diff = difficulty.Difficulty.load(options.input)
    except FileNotFoundError:
        abort(f"Could not find {options.input}")
    except JSONDecodeError as err:
        abort(f"Could not decode {options.input}, is it a json file?\n\t{err!r}")
    except BeatmapError as be:
        abort(
            "Detected invalid difficulty data.\n"
            f"\t{be!r}\n"
            f"\tCaused by {be.__cause__!r}"
        )
    version = MapVersion(options.version) if options.version is not None else diff.source_version

    if options.optimize is not None or options.axis_tolerance is not None:
        try:
            settings = optimizer.OptimizeSettings(
                tolerance=options.optimize if options.optimize is not None else optimizer.OptimizeSettings.tolerance,
                axis_tolerances=options.axis_tolerance or (),
                keep_modifiers=options.keep_modifiers,
            )
        except BeatmapError as be:
            abort(str(be))
        removed = diff.optimize_animations(settings)
        utils.logger.info(f"Optimization removed {removed} keyframes")

    output = options.output if options.output is not None else options.input
    try:
        diff.save(output, version, precision=options.precision)
    except ValueError as ve:
        abort(f"Could not write {version.value} difficulty: {ve}")

def entrypoint():
    main(get_parser().parse_args())

if __name__ == "__main__":
    entrypoint()
