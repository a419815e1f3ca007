import json
import logging
from typing import Callable, Optional

import click

from gbdeploy.models import DeploymentResult

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class DeploymentReporter:
    """Run a deployment and turn its outcome into console output and an exit code"""

    def __init__(self, output_file_path: Optional[str] = None):
        self.output_file_path = output_file_path

    def report_success(self, result: DeploymentResult) -> None:
        click.echo(f"proxy contract deployed at: {result.proxy_address}")
        click.echo(f"implementation deployed at: {result.implementation_address}")

        if self.output_file_path:
            with open(self.output_file_path, "w") as file:
                json.dump(result.as_dict(), file)
            click.secho(f"Wrote addresses to {self.output_file_path}", fg="blue")

    def report_failure(self, error: Exception) -> None:
        click.secho(f"Deployment failed: {error}", fg="red", err=True)

    def run(self, deploy_fn: Callable[[], DeploymentResult]) -> int:
        try:
            result = deploy_fn()
        except click.UsageError:
            # invalid command line input is reported by click
            raise
        except Exception as e:
            logger.debug("Deployment failed", exc_info=True)
            self.report_failure(e)
            return EXIT_FAILURE

        self.report_success(result)
        return EXIT_SUCCESS
