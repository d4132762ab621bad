"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import sys

from design_guide_linter.domain.errors import ConfigurationError
from design_guide_linter.infrastructure.di.container import DesignGuideContainer
from design_guide_linter.interface.cli import CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    try:
        container = DesignGuideContainer()
    except ConfigurationError as exc:
        print(f"design-guide: configuration error: {exc}", file=sys.stderr)
        sys.exit(2)

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        ast_source=container.get_ast_source(),
        guidance_service=container.get_guidance_service(),
        terminal_reporter=container.get_terminal_reporter(),
        json_reporter=container.get_json_reporter(),
        console=container.get_console(),
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
