#!/usr/bin/env python3
"""
evofunc Entrypoint - Build an island from YAML configuration and emit a prompt.

The configuration names the function to evolve, the island hyperparameters,
the program template, and a set of already-evaluated implementations. The
implementations are registered on a fresh island and the resulting prompt is
printed, ready to be sent to a code-generating model.

Usage:
    python run_island.py config.yaml
    python run_island.py --config config.yaml --output prompt.py
    python run_island.py --config config.yaml --dry-run
"""

import argparse
import logging
import sys
import yaml
from pathlib import Path
from typing import Dict, Any, List, Tuple

from evofunc.code import text_to_function
from evofunc.core import Island, IslandConfig, create_island
from evofunc.entities import Function


def setup_logging():
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def create_island_config(config_dict: Dict[str, Any]) -> IslandConfig:
    """Create IslandConfig from configuration dictionary."""
    island_config = config_dict.get('island', {})
    defaults = IslandConfig()

    return IslandConfig(
        functions_per_prompt=island_config.get('functions_per_prompt', defaults.functions_per_prompt),
        cluster_sampling_temperature_init=island_config.get(
            'cluster_sampling_temperature_init', defaults.cluster_sampling_temperature_init),
        cluster_sampling_temperature_period=island_config.get(
            'cluster_sampling_temperature_period', defaults.cluster_sampling_temperature_period),
        score_reduction=island_config.get('score_reduction', defaults.score_reduction),
        program_sampling=island_config.get('program_sampling', defaults.program_sampling),
        seed=island_config.get('seed', defaults.seed)
    )


def load_template(config_dict: Dict[str, Any], base_dir: Path = Path('.')) -> str:
    """Load the program template source from configuration."""
    template_config = config_dict['template']

    if 'code' in template_config:
        return template_config['code']

    template_file = Path(template_config['file'])
    if not template_file.is_absolute():
        template_file = base_dir / template_file
    if not template_file.exists():
        raise FileNotFoundError(f"Template file not found: {template_file}")
    return template_file.read_text()


def load_programs(config_dict: Dict[str, Any]) -> List[Tuple[Function, Dict[Any, float]]]:
    """Parse the evaluated seed programs listed in the configuration."""
    programs = []
    for entry in config_dict.get('programs', []):
        programs.append((text_to_function(entry['code']), dict(entry['scores'])))
    return programs


def create_island_from_config(config_dict: Dict[str, Any], base_dir: Path = Path('.')) -> Island:
    """Create an Island and register the configured seed programs on it."""
    island = create_island(
        template=load_template(config_dict, base_dir),
        function_to_evolve=config_dict['island']['function_to_evolve'],
        config=create_island_config(config_dict)
    )

    for function, scores_per_test in load_programs(config_dict):
        island.register_program(function, scores_per_test)

    return island


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration dictionary."""
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping of sections")

    required_sections = {'island': dict, 'template': dict, 'programs': list}
    for section, section_type in required_sections.items():
        if section not in config:
            raise ValueError(f"Missing required configuration section: {section}")
        if not isinstance(config[section], section_type):
            raise ValueError(f"Configuration section '{section}' must be a {section_type.__name__}")

    if 'function_to_evolve' not in config['island']:
        raise ValueError("Island configuration must specify 'function_to_evolve'")

    template = config['template']
    if 'code' not in template and 'file' not in template:
        raise ValueError("Template configuration must specify either 'code' or 'file'")

    for i, entry in enumerate(config['programs']):
        if not isinstance(entry, dict) or 'code' not in entry or 'scores' not in entry:
            raise ValueError(f"Program {i} must specify both 'code' and 'scores'")
        if not isinstance(entry['scores'], dict):
            raise ValueError(f"Program {i} scores must be a mapping of test to score")


def run_island(config_file: Path, dry_run: bool = False, output: Path = None) -> None:
    """Build the island from a configuration file and emit its prompt."""
    # Load configuration
    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Error loading configuration file: {e}")
        sys.exit(1)

    # Validate configuration
    try:
        validate_config(config)
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    if dry_run:
        print("Dry run mode - configuration validated successfully!")
        return

    try:
        logger.info("Creating island...")
        island = create_island_from_config(config, base_dir=config_file.parent)
        logger.info(f"Island statistics: {island.get_statistics()}")

        prompt, version_generated = island.get_prompt()
    except Exception as e:
        logger.error(f"Prompt generation failed: {e}", exc_info=True)
        print(f"Prompt generation failed: {e}")
        sys.exit(1)

    if output:
        output.write_text(prompt)
        logger.info(f"Prompt written to {output}")
    else:
        print(prompt)

    # The empty header closing the prompt is named after the last sampled slot.
    function_name = island.get_versioned_name(island.function_to_evolve, version_generated - 1)
    print(f"Requested version: {version_generated} ({function_name})")


def main():
    """Main entrypoint."""
    parser = argparse.ArgumentParser(
        description="Build an evofunc island and print the next prompt",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_island.py config.yaml
  python run_island.py --config my_config.yaml --output prompt.py
  python run_island.py --config config.yaml --dry-run
  python run_island.py --example-config > example.yaml
        """
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        type=Path,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to YAML configuration file (alternative to positional argument)'
    )

    parser.add_argument(
        '--output', '-o',
        type=Path,
        help='Write the prompt to this file instead of stdout'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration without building the island'
    )

    parser.add_argument(
        '--example-config',
        action='store_true',
        help='Print an example configuration file and exit'
    )

    args = parser.parse_args()

    if args.example_config:
        example_config_path = Path(__file__).parent / "config" / "example_config.yaml"
        try:
            with open(example_config_path, 'r') as f:
                print(f.read())
        except FileNotFoundError:
            print("Error: Example configuration file not found.")
            sys.exit(1)
        return

    # Determine config file
    config_file = args.config or args.config_file
    if not config_file:
        parser.error("Configuration file is required (provide as positional argument or with --config)")

    if not config_file.exists():
        print(f"Error: Configuration file not found: {config_file}")
        sys.exit(1)

    run_island(config_file, dry_run=args.dry_run, output=args.output)


if __name__ == "__main__":
    main()
