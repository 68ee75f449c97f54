# hyperchain

A compact proof-of-work block chain library. A wallet's address is the
SHA-256 of its RSA public key. Blocks carry coin transfers and page updates,
and every transaction is signed once for each of its inputs.

## What is in the package

- `hyperchain.hashing`: fixed-size `Hash` (32 bytes) and `Signature`
  (256 bytes) values, shown as base-62 text, and `sha256_hash`.
- `hyperchain.base62`: `encode` / `decode` between bytes and base-62 text;
  leading zero bytes become leading `0` characters.
- `hyperchain.codec`: the little-endian binary `Writer` / `Reader` used for
  hashing, storage and the wire protocol.
- `hyperchain.merkle.calculate_merkle_root`.
- `hyperchain.wallet`: `WalletStatus` (balance and highest used id),
  the abstract `Wallet`, and `PublicWallet`, which checks PKCS#1 v1.5
  signatures over a transaction digest.
- Transactions: `hyperchain.transfer` (`Transfer`, `TransferBuilder`,
  `Output`), `hyperchain.page` (`Page`), and `hyperchain.transaction`
  (`Transaction`, `TransactionHeader`, `Input`, `TransactionBuilder`).
  `hyperchain.variant` encodes a transaction of either kind.
- `hyperchain.transaction_queue.TransactionQueue`: pending transactions
  ordered by fee per byte, never ahead of the transactions they depend on.
- Blocks: `hyperchain.block` (`Block`, `BlockHeader`, `BlockBuilder`,
  `BlockValidationResult`), difficulty targets in `hyperchain.target`, and
  `hyperchain.miner.mine_block`.
- `hyperchain.chain.BlockChain`: blocks stored on disk in chunk files
  (`hyperchain.storage`, `hyperchain.ledger`), pending transfer and page
  queues, branch validation and merging, balance and history queries.
- Page data: `hyperchain.data` (`DataUnit`, `CreatePageData`) splits
  content into 1 MB chunks; `hyperchain.datastore.DataStore` keeps the
  chunks in files named by their hash.
- The service protocol: command and response classes in
  `hyperchain.service.command`, a blocking `Client` in
  `hyperchain.service.client`, and `start` in `hyperchain.service.server`.
- `hyperchain.explorer`: builds the plain dictionaries an explorer page is
  rendered from, by asking a client for blocks, wallets, statistics and
  site pages.

Requires Python 3.10 or newer and the `cryptography` distribution.

## A first chain

```python
from pathlib import Path
from tempfile import mkdtemp

from hyperchain.block import Block
from hyperchain.chain import BlockChain
from hyperchain.miner import mine_block
from hyperchain.wallet import PublicWallet

chain = BlockChain(Path(mkdtemp()))
miner = PublicWallet.from_public_key(bytes(range(256)))

block = mine_block(Block.new_blank(chain, miner))
print(chain.add(block).status)                             # AddStatus.OK
print(chain.top().header.block_id)                         # 0
print(chain.get_wallet_status(miner.address()).balance)    # 10.0
```

`BlockChain.add` returns a `BlockChainAddResult` whose `status` says whether
the block was accepted, was a duplicate, needs earlier blocks first, or was
invalid; for an invalid block `reason` holds the `BlockValidationResult`.
`can_merge_branch` and `merge_branch` let a longer, valid branch replace the
top of the chain.

## Signing transactions

`TransactionBuilder.add_input` and `BlockChain.new_transfer` /
`BlockChain.new_page` take wallet objects that provide:

- `public_key()`: the RSA modulus as a 256-byte little-endian `Signature`,
- `public_exponent()`: the exponent as 3 little-endian bytes,
- `sign(digest)`: a raw PKCS#1 v1.5 signature of the 32-byte header hash,
- `address()`: the SHA-256 of the public key.

`Transaction.validate_content` checks amounts and verifies every signature
with `PublicWallet.verify`.

## Difficulty

```python
from hyperchain.target import difficulty, compact_from_difficulty

print(difficulty(bytes([0x00, 0xFF, 0xFF, 0x1F])))  # 256.0
print(compact_from_difficulty(256.0))               # b'\x00\xff\xff\x1f'
```

The target is recalculated every 100 blocks so that blocks arrive about
every ten seconds.

## Merkle roots and identifiers

```python
from hyperchain import base62
from hyperchain.merkle import calculate_merkle_root

root = calculate_merkle_root([b"\x01\x02", b"\x06\x04\x07", b"\x00"])
print(root)                                   # base-62 text of the root
print(base62.decode(str(root)) == root.data())  # True
```

## The service protocol

Each message is a frame: a little-endian u64 length followed by the encoded
command or response. `start(on_command, host="0.0.0.0", port=9988, ready=None)`
listens for clients, hands every decoded command to `on_command` one at a
time, sends back the response it returns, and stops after it returns an
`ExitResponse`. `Client(host="127.0.0.1", port=9988)` sends a command and
waits for the reply:

```python
from hyperchain.service.client import Client
from hyperchain.service.command import StatisticsCommand

with Client() as client:
    print(client.send(StatisticsCommand()))
```

## What the package does not do

- It has no private wallet: no key generation, no signing and no wallet
  file format. Signing wallets must be supplied by the caller as described
  above. `SendCommand` and `UpdatePageCommand` carry serialized private
  wallets as opaque bytes, which the package does not produce or read.
- It has no node: nothing maps service commands onto a `BlockChain`. The
  `on_command` callback given to `start` must do that.
- It has no command-line program and installs no commands.
- It has no web server or templates for the explorer; `hyperchain.explorer`
  only returns the data for its pages.
- It does not talk to other nodes or exchange blocks over a network.