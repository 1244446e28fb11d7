#!/usr/bin/env python3
"""
Gas comparison runner: NFTMarketplace_Before vs NFTMarketplace_After.

Usage:
    npx hardhat node                      # in another terminal
    npx hardhat compile
    python run_gas_comparison.py
    python run_gas_comparison.py --scenarios list_item batch_list_items --format table
    python run_gas_comparison.py --list-scenarios
"""

import argparse
import sys

from basic_data_structure import Variant
from benchmark_config import get_benchmark_config, load_config_file, set_benchmark_config
from execution_environment import Web3ExecutionEnvironment, load_contract_artifact, setup_web3_connection
from gas_comparison_suite import GasComparisonSuite
from marketplace_scenarios import SCENARIO_NAMES, get_scenarios
from report_generator import OPTIMIZATION_NOTES, ReportAssembler, TabularReportRenderer, entries_from_results
from report_organizer import ReportOrganizer
from result_visualizer import create_savings_chart
from variant_pair import VariantDescriptor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Compare gas usage of a baseline and an optimized marketplace contract')
    parser.add_argument('--config', type=str, default=None, help='JSON file with benchmark setting overrides')
    parser.add_argument('--rpc-url', type=str, default=None, help='JSON-RPC endpoint of the Hardhat node')
    parser.add_argument('--artifacts-dir', type=str, default=None, help='Hardhat artifacts directory')
    parser.add_argument('--baseline', type=str, default=None, help='Baseline contract name')
    parser.add_argument('--optimized', type=str, default=None, help='Optimized contract name')
    parser.add_argument('--scenarios', nargs='+', default=None, choices=SCENARIO_NAMES,
                        help='Scenarios to run (default: all, in catalogue order)')
    parser.add_argument('--list-scenarios', action='store_true', help='List available scenarios and exit')
    parser.add_argument('--gas-price-gwei', type=float, default=None, help='Gas price used for ether cost figures')
    parser.add_argument('--reports-dir', type=str, default=None, help='Directory for saved reports and charts')
    parser.add_argument('--format', choices=['text', 'table'], default=None, help='Console report format')
    parser.add_argument('--no-save', action='store_true', help='Do not write report files')
    parser.add_argument('--no-charts', action='store_true', help='Do not draw the savings chart')
    parser.add_argument('--stop-on-error', action='store_true', help='Abort the run at the first failed scenario')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose output')
    return parser


def apply_cli_overrides(args: argparse.Namespace):
    if args.config:
        load_config_file(args.config)
    overrides = {
        'rpc_url': args.rpc_url,
        'artifacts_dir': args.artifacts_dir,
        'baseline_contract': args.baseline,
        'optimized_contract': args.optimized,
        'gas_price_gwei': args.gas_price_gwei,
        'reports_dir': args.reports_dir,
        'output_format': args.format,
    }
    set_benchmark_config(**{k: v for k, v in overrides.items() if v is not None})
    if args.no_save:
        set_benchmark_config(save_results=False)
    if args.no_charts:
        set_benchmark_config(generate_charts=False)
    if args.stop_on_error:
        set_benchmark_config(stop_on_error=True)
    if args.verbose:
        set_benchmark_config(verbose=True)
    return get_benchmark_config()


def render_report(run, config) -> str:
    entries = entries_from_results(run.results)
    if config.output_format == 'table':
        return TabularReportRenderer().render(entries, commentary=OPTIMIZATION_NOTES, failures=run.failures)
    return ReportAssembler(gas_price_gwei=config.gas_price_gwei).assemble(
        entries, commentary=OPTIMIZATION_NOTES, failures=run.failures
    )


def save_run(run, report_text: str, config):
    organizer = ReportOrganizer(config.reports_dir)
    entries = entries_from_results(run.results)
    organizer.save_text_report(report_text)
    organizer.save_comparisons(entries)
    organizer.save_measurements(run.results)
    if config.generate_charts:
        create_savings_chart(entries, organizer.get_organized_filepath("gas_savings.png", "charts"))
    organizer.save_run_metadata({'config': config.to_dict(), **run.metadata()})
    return organizer


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_scenarios:
        for name in SCENARIO_NAMES:
            print(name)
        return 0

    print("--- 1. Setup Phase ---")
    config = apply_cli_overrides(args)
    web3 = setup_web3_connection(config.rpc_url)
    if web3 is None:
        return 2
    env = Web3ExecutionEnvironment(web3, receipt_timeout=config.receipt_timeout, verbose=config.verbose)

    print("--- 2. Loading Artifacts ---")
    try:
        baseline = VariantDescriptor(Variant.BASELINE, load_contract_artifact(config.artifacts_dir, config.baseline_contract))
        optimized = VariantDescriptor(Variant.OPTIMIZED, load_contract_artifact(config.artifacts_dir, config.optimized_contract))
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ {e}")
        return 2
    print(f"  ✅ Baseline: {baseline.contract_name}")
    print(f"  ✅ Optimized: {optimized.contract_name}")

    print("--- 3. Running Scenarios ---")
    accounts = env.accounts()
    try:
        scenarios = get_scenarios(accounts, config, args.scenarios)
    except ValueError as e:
        print(f"❌ {e}")
        return 2
    suite = GasComparisonSuite(env, baseline, optimized, deployer=accounts[0], verbose=config.verbose)
    run = suite.run(scenarios, stop_on_error=config.stop_on_error)

    print("--- 4. Report ---")
    report_text = render_report(run, config)
    print(report_text)

    if config.save_results:
        organizer = save_run(run, report_text, config)
        print(f"📁 All results saved to: {organizer.current_run_dir}")

    return 0 if run.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
