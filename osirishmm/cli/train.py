#!/usr/bin/env python3
"""
osirishmm train

Determine the mean and standard deviation of a base analogue's current.
Reads pre-segmented training data (.foh), aligns each read's signal to its
region of interest with a Viterbi state graph, pools the aligned events by
reference position and fits a two-component Gaussian mixture per position.

Example:
    osirishmm-train -d data.foh -p template_r9.4.5mer.tsv -b 150 650 -o trained.tsv
"""

import argparse
import os
import sys

from osirishmm.cli.common import (
    add_bounds_args,
    add_em_args,
    add_output_args,
    add_quality_args,
    add_verbose_args,
    add_version_args,
)
from osirishmm.core.pore_model import PoreModel
from osirishmm.core.reference import load_reference
from osirishmm.training.engine import train_from_file
from osirishmm.training.parameters import TrainingConfig, load_config, save_config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Train base-analogue pore-model parameters from nanopore training data',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument('-d', '--training-data', required=True,
                        help='Training data in .foh format')
    parser.add_argument('-p', '--pore-model', required=True,
                        help='Tab-delimited pore model (kmer, mean, std)')
    add_bounds_args(parser, required=True)
    add_output_args(parser)

    parser.add_argument('-r', '--reference', default=None,
                        help='FASTA reference overriding the one stored in the .foh file')
    parser.add_argument('--contig', default=None,
                        help='Record of --reference to use (default: the only record)')
    parser.add_argument('-c', '--config', default=None,
                        help='JSON training configuration (transition weights etc.)')
    add_quality_args(parser)
    add_em_args(parser)
    parser.add_argument('--kl', action='store_true',
                        help='Append a KL-divergence column to the output')
    add_verbose_args(parser)
    add_version_args(parser)

    return parser.parse_args(argv)


def _resolve_reference(args):
    if args.reference is None:
        return None
    reference = load_reference(args.reference)
    if args.contig is not None:
        return reference.get(args.contig)
    if len(reference) != 1:
        print(f"Error: {args.reference} holds {len(reference)} records; choose one with --contig")
        sys.exit(1)
    return reference.get(reference.names[0])


def main(argv=None):
    args = parse_args(argv)

    if args.config:
        config = load_config(args.config)
    else:
        config = TrainingConfig()
    config.bounds = tuple(args.bounds)
    config.max_quality = args.max_quality
    config.em_tolerance = args.em_tolerance
    config.em_max_iter = args.em_max_iter

    print(f"Loading pore model: {args.pore_model}")
    pore_model = PoreModel.from_tsv(args.pore_model)
    config.kmer_length = pore_model.k
    print(f"  {len(pore_model)} {pore_model.k}-mers")

    reference = _resolve_reference(args)

    out_dir = os.path.dirname(os.path.abspath(args.output))
    os.makedirs(out_dir, exist_ok=True)

    print(f"\nTraining on {args.training_data}")
    stats = train_from_file(
        args.training_data, pore_model, args.output,
        config=config,
        reference=reference,
        include_kl=args.kl,
        verbose=args.verbose,
    )

    summary = stats.get_summary()
    print(f"\nAligned {summary['reads_aligned']}/{summary['reads_seen']} reads "
          f"({summary['reads_low_quality']} low quality, {summary['reads_unalignable']} unalignable)")
    print(f"Fitted {summary['positions_fitted']} positions "
          f"({summary['positions_degenerate']} degenerate)")

    config_path = args.output + '.config.json'
    save_config(config, config_path, extra={'summary': summary})
    print(f"  Saved: {args.output}")
    print(f"  Saved: {config_path}")
    print("Done!")


if __name__ == '__main__':
    main()
