"""
Full-text indexing and query engine package.

This package builds an inverted index inside a document store:
- tokenizer: Language registry and token aggregation
- english / japanese: Per-language splitting, stop words and stemming
- query: Query string parser
- stats: TF-IDF scoring
- counter: Sharded counters
- batch: Write batching across the store's commit limit
- cursor: Pagination cursors
- indexer: Document indexing and removal
- engine: Query execution
"""
