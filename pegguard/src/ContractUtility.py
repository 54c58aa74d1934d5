"""ContractUtility: Web3 initialization and contract ABI loading."""

import json
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from .errors import ConfigurationError

ABI_DIR = Path(__file__).parent / "abi"


class ContractUtility:
    """Utility for Web3 connection and contract ABI loading.

    :ivar rpc_url: JSON-RPC endpoint URL.
    :ivar account: Local signer used for every write.
    :ivar w3: Web3 instance that signs and sends transactions as ``account``.
    """

    def __init__(self, rpc_url: str, private_key: str) -> None:
        """Initialize the contract utility.

        :param rpc_url: JSON-RPC endpoint URL.
        :param private_key: Hex private key of the operator account.
        :raises ConfigurationError: If the private key cannot be parsed.
        """
        self.rpc_url = rpc_url
        try:
            self.account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            raise ConfigurationError(f"Invalid PRIVATE_KEY: {e}") from e

        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url))
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
        self.w3.eth.default_account = self.account.address

    @staticmethod
    def get_abi(contract_name: str) -> list:
        """Load a contract ABI from the bundled abi folder.

        :param contract_name: Name of the contract (e.g., "PegGuardKeeper").
        :returns: ABI as a list of entries.
        """
        with open(ABI_DIR / f"{contract_name}.json", "r") as file:
            return json.load(file)
