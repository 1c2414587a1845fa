"""
Cluster Example - Temporal on AKS.

Run with the Pulumi CLI from this directory (`pulumi up`), or without a
Pulumi project via `hourglass up --substrate cluster`.

Publishes webEndpoint and starterEndpoint; the Temporal server is only
reachable inside the cluster. Sizing comes from HG_VM_SIZE and HG_VM_COUNT,
the namespace from HG_APP_NAMESPACE.
"""

from hourglass.assembly import Substrate, build_program

build_program(Substrate.CLUSTER)()
