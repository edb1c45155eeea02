"""
DeploymentGate - skip units that are already on chain.

The check hits the chain every time it is asked; a unit deployed by a
concurrent process or an earlier partial run is seen right before its
funding transaction would be sent.
"""

import logging

from tonchestra.chain import ChainClient

logger = logging.getLogger(__name__)


class DeploymentGate:
    """Decides whether a derived address still needs a deployment."""

    def __init__(self, client: ChainClient):
        self._client = client

    def is_deployed(self, address: str) -> bool:
        """
        Query whether the contract at address is already initialized.

        Raises:
            ChainError: If the state query fails
        """
        deployed = self._client.is_contract_deployed(address)
        if deployed:
            logger.info(f"Contract already deployed at {address}, skipping deployment")
        return deployed
