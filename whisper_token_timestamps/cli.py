import argparse
import json
import logging
import os
import sys

import torch

from . import __version__
from .alignment_heads import available_models, get_alignment_heads, get_model_dimensions
from .attention import split_batched_cross_attentions
from .config import AUDIO_TIME_PER_TOKEN, DTW_BACKENDS, TASKS, TimestampConfig, logger
from .timestamps import extract_token_timestamps


def str2alignment_heads(string):
    heads = json.loads(string)
    if not isinstance(heads, list) or not all(isinstance(h, list) and len(h) == 2 for h in heads):
        raise argparse.ArgumentTypeError(f"Expected a JSON list of [layer, head] pairs, got {string}")
    return [tuple(h) for h in heads]


def load_generate_outputs(path, hf_layout=False):
    outputs = torch.load(path, map_location="cpu")
    if not isinstance(outputs, dict):
        raise ValueError(f"Expected a dictionary in {path}, got {type(outputs).__name__}")
    if hf_layout and outputs.get("cross_attentions") is not None:
        outputs = dict(outputs)
        outputs["cross_attentions"] = split_batched_cross_attentions(outputs["cross_attentions"])
    return outputs


def cli(argv=None):

    parser = argparse.ArgumentParser(
        description='Compute token timestamps from the cross attentions of a Whisper generation',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('-v', '--version', help="show version and exit", action='version', version=f'{__version__}')

    parser.add_argument('outputs', help="file(s) saved with torch.save, containing a dictionary with \"sequences\" and \"cross_attentions\"", nargs='+')
    parser.add_argument('--hf_layout', help="cross attentions are stored as steps * layers * (batch, heads, tokens, frames)", default=False, action="store_true")
    parser.add_argument('--model', help=f"name of the Whisper model, to use its alignment heads. Examples: {', '.join(available_models())}", default=None)
    parser.add_argument('--alignment_heads', help="alignment heads, as a JSON list of [layer, head] pairs (supersedes --model)", default=None, type=str2alignment_heads)
    parser.add_argument('--decoder_layers', help="number of decoder layers (guessed from --model if not specified)", default=None, type=int)
    parser.add_argument('--num_heads', help="number of attention heads per decoder layer (guessed from --model if not specified)", default=None, type=int)
    parser.add_argument('--median_filter_width', help="width of the median filter used to smooth attention weights (7 if not specified)", default=None, type=int)
    parser.add_argument('--num_frames', help="number of audio frames to consider in the cross attentions", default=None, type=int)
    parser.add_argument('--time_precision', help="duration of one audio frame, in seconds", default=AUDIO_TIME_PER_TOKEN, type=float)
    parser.add_argument('--task', help="task performed during the generation", default="transcribe", choices=TASKS)
    parser.add_argument('--dtw_backend', help="implementation of the dynamic time warping", default="native", choices=DTW_BACKENDS)
    parser.add_argument('--output', '-o', help="JSON file to write (standard output if not specified)", default=None)
    parser.add_argument('--debug', help="print some debug information about the alignment", default=False, action="store_true")

    args = parser.parse_args(argv)

    logging.basicConfig()
    if args.debug:
        logger.setLevel(logging.DEBUG)

    decoder_layers, num_heads = args.decoder_layers, args.num_heads
    alignment_heads = args.alignment_heads
    if args.model:
        default_layers, default_heads = get_model_dimensions(args.model)
        decoder_layers = decoder_layers or default_layers
        num_heads = num_heads or default_heads
        if alignment_heads is None:
            alignment_heads = get_alignment_heads(args.model, decoder_layers, num_heads)
    if decoder_layers is None:
        parser.error("--decoder_layers is required when --model is not specified")

    config = TimestampConfig(
        decoder_layers=decoder_layers,
        alignment_heads=alignment_heads,
        median_filter_width=args.median_filter_width,
        num_frames=args.num_frames,
        time_precision=args.time_precision,
        num_heads=num_heads,
        task=args.task,
        dtw_backend=args.dtw_backend,
    )

    result = {}
    for path in args.outputs:
        outputs = load_generate_outputs(path, hf_layout=args.hf_layout)
        timestamps = extract_token_timestamps(outputs, config)
        result[os.path.basename(path)] = {
            "token_timestamps": [[round(t, 2) for t in row] for row in timestamps.tolist()],
        }

    if args.output:
        output_dir = os.path.dirname(args.output)
        if output_dir and not os.path.isdir(output_dir):
            os.makedirs(output_dir)
        with open(args.output, "w", encoding="utf-8") as js:
            json.dump(result, js, indent=2, ensure_ascii=False)
    else:
        json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
        print()


if __name__ == "__main__":
    cli()
