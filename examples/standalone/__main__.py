"""
Standalone Example - Temporal on Azure Container Instances.

Run with the Pulumi CLI from this directory (`pulumi up`), or without a
Pulumi project via `hourglass up --substrate standalone`.

Publishes serverEndpoint, webEndpoint and starterEndpoint. The workflow
application is built from HG_APP_FOLDER (default ./workflow), which must
contain a Dockerfile.
"""

from hourglass.assembly import Substrate, build_program

build_program(Substrate.STANDALONE)()
