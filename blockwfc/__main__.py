from tap import Tap
from typing import Optional
import logging
import pathlib

from . import png
from .wvfc import WavefunctionCollapse


class WvfcParser(Tap):
    source: pathlib.Path  # 8 bit RGB seed image
    output: pathlib.Path
    width: int = 48
    height: int = 48
    block_width: int = 3
    block_height: int = 3
    trials: int = 10
    seed: Optional[int] = None
    verbose: bool = False


argparser = WvfcParser()
args = argparser.parse_args()

logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

source_texture = png.load_png(args.source)
wvfc = WavefunctionCollapse(source_texture, (args.block_width, args.block_height))
print(f"Running with args {args}")
generated_image = wvfc.run((args.width, args.height), trials=args.trials, seed=args.seed)
png.save_png(generated_image, args.output)
