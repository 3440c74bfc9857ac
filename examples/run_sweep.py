"""Example driver: declare scenarios and run hooks in Python.

Run a quick projection first, then the real sweep:

    python examples/run_sweep.py -d 15 -w 5 -t
    python examples/run_sweep.py -d 15 -w 5 --lb-ssh-alias loadbalancer

Scenarios are declared once here. The hooks add the HTTPS port to every
JMeter invocation and, for scenarios that talk to the backend, collect
metrics from the identity server host and fetch its GC log.
"""

import sys

from perfsweep import ScenarioRegistry, run
from perfsweep.sweep.types import RunContext

IS_SSH_HOST = "is1"

registry = ScenarioRegistry()
registry.declare("authenticate_super_tenant_user", "authenticate-super-tenant-user.jmx")
registry.declare("oauth_client_credentials_grant", "oauth-client-credentials-grant.jmx")
registry.declare("oauth_password_grant", "oauth-password-grant.jmx")
registry.declare("saml2_sso_redirect_binding", "saml2-sso-redirect-binding.jmx", use_backend=False)


def before_run(context: RunContext) -> None:
    context.jmeter_params.append("port=443")
    if context.concurrency >= 300:
        context.extra_jvm_args = "-XX:+UseG1GC"


def after_run(context: RunContext) -> None:
    if not context.scenario.use_backend or context.collector is None:
        return
    context.collector.write_server_metrics("is", IS_SSH_HOST, "carbon")
    context.collector.download_file(IS_SSH_HOST, "wso2is/repository/logs/gc.log", "is_gc.log")


if __name__ == "__main__":
    sys.exit(
        run(
            registry=registry,
            before_run=before_run,
            after_run=after_run,
            script_path=__file__,
        )
    )
