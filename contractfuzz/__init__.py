"""contractfuzz: negative and boundary testing for contract-described HTTP APIs.

For every operation in an OpenAPI contract the engine assembles request
skeletons, drives them through a table of mutation-based fuzzers, sends
the mutated requests to a live service and classifies each response
against the response-code family it should have produced.
"""

__version__ = "1.0.0"
