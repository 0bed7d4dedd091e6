"""
Command-line interface for tensordb.

This module provides CLI commands for inspecting registry files and
benchmarking tensor operations.
"""

import argparse
import json
import logging
import os
import sys
import tempfile
import time
from typing import Any, Dict, List, Optional

import torch

from .core.interop import from_torch
from .core.registry import TensorRegistry
from .factory import create_registry
from .log import setup_logging


def inspect_command(argv: Optional[List[str]] = None) -> int:
    """CLI command for listing the contents of a registry file."""
    parser = argparse.ArgumentParser(description='Inspect a tensordb registry file')
    parser.add_argument('file', help='Registry file to read')
    parser.add_argument('--byte-order', choices=['=', '<', '>'], default='=',
                       help='Byte order the file was written with')
    parser.add_argument('--encoding', default='utf-8',
                       help='Text encoding of tensor names and descriptions')
    parser.add_argument('--json', action='store_true',
                       help='Emit JSON instead of a table')

    args = parser.parse_args(argv)

    try:
        registry = create_registry(byte_order=args.byte_order, encoding=args.encoding)
    except ValueError as exc:
        parser.error(str(exc))

    result = registry.load_result(args.file)
    if not result:
        print(f"Cannot load {args.file}: {result.message}", file=sys.stderr)
        return 1

    report = describe_registry(registry)

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        for entry in report['tensors']:
            print(f"{entry['name']:<24} {entry['shape']:<16} {entry['description']}")
        stats = report['stats']
        print(f"{stats['tensor_count']} tensors, {stats['total_elements']} elements, "
              f"{stats['total_memory_bytes']} bytes")

    return 0


def benchmark_command(argv: Optional[List[str]] = None) -> int:
    """CLI command for benchmarking tensor operations."""
    parser = argparse.ArgumentParser(description='Benchmark tensordb performance')
    parser.add_argument('--size', type=int, nargs=2, default=[128, 128],
                       help='Matrix dimensions')
    parser.add_argument('--num-tensors', type=int, default=10,
                       help='Number of tensors to store')
    parser.add_argument('--iterations', type=int, default=5,
                       help='Number of benchmark iterations')
    parser.add_argument('--output', type=str, help='Output file for results')

    args = parser.parse_args(argv)
    if min(args.size) < 1 or args.num_tensors < 1 or args.iterations < 1:
        parser.error('sizes, tensor count and iterations must be positive')

    results = run_benchmark(args.size, args.num_tensors, args.iterations)

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
    else:
        print(json.dumps(results, indent=2))

    return 0


def describe_registry(registry: TensorRegistry) -> Dict[str, Any]:
    tensors = []
    for name in registry.list_names():
        metadata = registry.get_metadata(name)
        tensors.append({
            'name': name,
            'shape': metadata.shape_string(),
            'size': metadata.size,
            'description': metadata.description,
        })

    return {
        'tensors': tensors,
        'stats': registry.get_stats().as_dict(),
    }


def _summarize(times: List[float]) -> Dict[str, Any]:
    return {
        'mean': sum(times) / len(times),
        'min': min(times),
        'max': max(times),
        'all': times
    }


def run_benchmark(size: List[int], num_tensors: int, iterations: int) -> Dict[str, Any]:
    """Run benchmark tests."""
    rows, cols = size
    results = {
        'config': {
            'size': [rows, cols],
            'num_tensors': num_tensors,
            'iterations': iterations,
        },
        'results': {}
    }

    registry = create_registry()
    for i in range(num_tensors):
        registry.store(f"t{i}", from_torch(torch.randn(rows, cols)), "benchmark input")
    registry.store("square", from_torch(torch.randn(cols, rows)))

    add_times = []
    matmul_times = []
    for i in range(iterations):
        start_time = time.perf_counter()
        for j in range(num_tensors):
            registry.compute("sum", f"t{j}", f"t{(j + 1) % num_tensors}", "add")
        add_times.append(time.perf_counter() - start_time)

        start_time = time.perf_counter()
        registry.compute("product", "t0", "square", "matmul")
        matmul_times.append(time.perf_counter() - start_time)

    save_times = []
    load_times = []
    fd, path = tempfile.mkstemp(suffix='.tdb')
    os.close(fd)
    try:
        for i in range(iterations):
            start_time = time.perf_counter()
            registry.save_to_file(path)
            save_times.append(time.perf_counter() - start_time)

            start_time = time.perf_counter()
            create_registry().load_from_file(path)
            load_times.append(time.perf_counter() - start_time)
    finally:
        os.remove(path)

    results['results'] = {
        'add_times': _summarize(add_times),
        'matmul_times': _summarize(matmul_times),
        'save_times': _summarize(save_times),
        'load_times': _summarize(load_times),
        'stats': registry.get_stats().as_dict(),
    }

    return results


COMMANDS = {
    'inspect': inspect_command,
    'benchmark': benchmark_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python -m tensordb.cli <command>")
        print("Commands: " + ", ".join(COMMANDS))
        return 1

    command, rest = argv[0], argv[1:]
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        return 1

    setup_logging(logging.WARNING)
    return COMMANDS[command](rest)


if __name__ == '__main__':
    sys.exit(main())
