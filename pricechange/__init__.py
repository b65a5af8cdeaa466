"""Token price and price-change API backed by a blockchain indexing subgraph."""
