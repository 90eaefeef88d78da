"""Command-line interface for dtdforge using argparse."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from dtdforge.core.errors import DeconvolutionError
from dtdforge.core.linalg import EstimateCType, estimate_c
from dtdforge.data.synthetic import generate_dataset
from dtdforge.io.matrices import (
    LabeledMatrix,
    check_row_names,
    named_vector,
    read_matrix,
    read_vector,
    write_matrix,
    write_result,
)
from dtdforge.solvers.deconvolution import DeconvolutionModel
from dtdforge.validation.metrics import celltype_correlation_metrics

logger = logging.getLogger(__name__)


def _load_weights(args: argparse.Namespace, x: LabeledMatrix) -> np.ndarray:
    if not args.g:
        return np.ones(x.shape[0])
    g = read_vector(args.g)
    check_row_names(x.row_names, g.row_names, "g")
    return g.values[:, 0]


def _load_model(args: argparse.Namespace) -> Tuple[DeconvolutionModel, LabeledMatrix, LabeledMatrix, np.ndarray]:
    x = read_matrix(args.x)
    y = read_matrix(args.y)
    c = read_matrix(args.c)
    check_row_names(x.row_names, y.row_names, "Y")
    check_row_names(x.col_names, c.row_names, "C")
    model = DeconvolutionModel(x.values, y.values, c.values)
    g = _load_weights(args, x)
    logger.debug("Loaded %r with weights from %s", model, args.g or "defaults")
    return model, x, c, g


def _emit(args: argparse.Namespace, result: Dict[str, Any], summary: str) -> None:
    if args.output:
        write_result(args.output, result)
        print(f"{summary}; wrote {args.output}")
    else:
        print(summary)


def cmd_evaluate(args: argparse.Namespace) -> None:
    model, x, c, g = _load_model(args)
    score = model.evaluate(g)
    c_hat = model.estimate_c(g)
    metrics = celltype_correlation_metrics(c.values, c_hat, cell_types=x.col_names or None)
    result = {
        "score": score,
        "correlations": metrics["correlations"],
        "rmse": metrics["rmse"],
    }
    _emit(args, result, f"Score: {score:.6f}")


def cmd_gradient(args: argparse.Namespace) -> None:
    model, x, _, g = _load_model(args)
    grad = model.raw_gradient(g) if args.raw else model.gradient(g)
    result = {
        "clamped": not args.raw,
        "gradient": named_vector(x.row_names, grad),
    }
    _emit(args, result, f"Gradient norm: {np.linalg.norm(grad):.6g}")


def cmd_estimate_c(args: argparse.Namespace) -> None:
    x = read_matrix(args.x)
    y = read_matrix(args.y)
    check_row_names(x.row_names, y.row_names, "Y")
    g = _load_weights(args, x)
    c_hat = estimate_c(x.values, y.values, g, method=args.method)
    result = {
        "method": EstimateCType(args.method).value,
        "cell_types": x.col_names,
        "samples": y.col_names,
        "c_hat": c_hat,
    }
    _emit(args, result, f"Estimated C with shape {c_hat.shape}")


def cmd_simulate(args: argparse.Namespace) -> None:
    data = generate_dataset(
        n_genes=args.genes,
        n_cell_types=args.cell_types,
        n_samples=args.samples,
        noise=args.noise,
        seed=args.seed,
    )
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    write_matrix(outdir / "X.csv", LabeledMatrix(data.x, data.gene_names, data.cell_types))
    write_matrix(outdir / "Y.csv", LabeledMatrix(data.y, data.gene_names, data.sample_names))
    write_matrix(outdir / "C.csv", LabeledMatrix(data.c, data.cell_types, data.sample_names))
    print(f"Wrote X.csv, Y.csv and C.csv to {outdir}")


def _add_matrix_args(parser: argparse.ArgumentParser, with_c: bool = True) -> None:
    parser.add_argument("--x", type=Path, required=True, help="Reference matrix CSV (genes x cell types)")
    parser.add_argument("--y", type=Path, required=True, help="Bulk matrix CSV (genes x samples)")
    if with_c:
        parser.add_argument("--c", type=Path, required=True, help="Cell-type profile CSV (cell types x samples)")
    parser.add_argument("--g", type=Path, help="Gene weight CSV (gene, weight); defaults to all ones")
    parser.add_argument("--output", type=Path, help="Write JSON result here")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dtdforge",
        description="Gene-weighted deconvolution loss, gradient and estimates",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate = subparsers.add_parser("evaluate", help="Correlation loss for a weight vector")
    _add_matrix_args(evaluate)
    evaluate.set_defaults(func=cmd_evaluate)

    gradient = subparsers.add_parser("gradient", help="Gradient of the loss with respect to g")
    _add_matrix_args(gradient)
    gradient.add_argument("--raw", action="store_true", help="Do not clamp the gradient to <= 0")
    gradient.set_defaults(func=cmd_gradient)

    estimate = subparsers.add_parser("estimate-c", help="Estimate cell-type profiles from bulk data")
    _add_matrix_args(estimate, with_c=False)
    estimate.add_argument(
        "--method",
        choices=[m.value for m in EstimateCType],
        default=EstimateCType.DIRECT.value,
    )
    estimate.set_defaults(func=cmd_estimate_c)

    simulate = subparsers.add_parser("simulate", help="Write a synthetic X/Y/C data set")
    simulate.add_argument("--genes", type=int, default=100)
    simulate.add_argument("--cell-types", type=int, default=5)
    simulate.add_argument("--samples", type=int, default=20)
    simulate.add_argument("--noise", type=float, default=0.01)
    simulate.add_argument("--seed", type=int)
    simulate.add_argument("--outdir", type=Path, default=Path("."))
    simulate.set_defaults(func=cmd_simulate)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except DeconvolutionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
