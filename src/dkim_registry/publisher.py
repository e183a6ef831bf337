"""On-chain DKIM registry client. One transaction per domain, full replacement of its hashes."""

import logging
from typing import Optional, Sequence

from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from .config import RegistrySettings
from .exceptions import PublicationFailure
from .models import PublicationResult, PublicationStatus

logger = logging.getLogger(__name__)

RPC_REQUEST_TIMEOUT = 30

REGISTRY_ABI = [
    {
        "type": "function",
        "name": "setDKIMPublicKeyHashes",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "domainName", "type": "string"},
            {"name": "publicKeyHashes", "type": "uint256[]"},
        ],
        "outputs": [],
    },
]

# Errors raised by web3 or the HTTP transport while talking to the node
_RPC_ERRORS = (Web3Exception, ValueError, OSError)


class RegistryPublisher:
    def __init__(self, settings: RegistrySettings, web3: Optional[Web3] = None):
        self._settings = settings
        self._w3 = web3 or Web3(
            Web3.HTTPProvider(settings.rpc_url, request_kwargs={"timeout": RPC_REQUEST_TIMEOUT})
        )
        self._private_key = settings.private_key.get_secret_value()
        self._sender = self._w3.eth.account.from_key(self._private_key).address
        self._contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(settings.contract_address),
            abi=REGISTRY_ABI,
        )

    def publish(self, domain: str, commitments: Sequence[int]) -> PublicationResult:
        """Set the full commitment list for ``domain`` and wait for the receipt.

        An empty list is a no-op and touches the network not at all. Failures
        raise PublicationFailure and are never retried here.
        """
        hashes = [int(c) for c in commitments]
        if not hashes:
            logger.debug("%s: nothing to publish", domain)
            return PublicationResult(domain=domain, status=PublicationStatus.NOOP)

        try:
            tx_hash = Web3.to_hex(self._send(domain, hashes))
        except _RPC_ERRORS as e:
            raise PublicationFailure(domain, f"transaction rejected: {e}") from e

        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._settings.confirmation_timeout
            )
        except TimeExhausted as e:
            raise PublicationFailure(
                domain,
                f"not confirmed within {self._settings.confirmation_timeout:g}s",
                tx_hash,
            ) from e
        except _RPC_ERRORS as e:
            raise PublicationFailure(domain, f"receipt lookup failed: {e}", tx_hash) from e

        if receipt["status"] != 1:
            raise PublicationFailure(domain, "transaction reverted", tx_hash)

        logger.info("Updated hashes for domain %s. Tx: %s", domain, tx_hash)
        return PublicationResult(
            domain=domain,
            status=PublicationStatus.PUBLISHED,
            commitments=hashes,
            tx_hash=tx_hash,
        )

    def _send(self, domain: str, hashes: list) -> bytes:
        nonce = self._w3.eth.get_transaction_count(self._sender, "pending")
        tx = self._contract.functions.setDKIMPublicKeyHashes(domain, hashes).build_transaction(
            {"from": self._sender, "nonce": nonce}
        )
        signed = self._w3.eth.account.sign_transaction(tx, self._private_key)
        return self._w3.eth.send_raw_transaction(signed.raw_transaction)
