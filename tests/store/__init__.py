"""Contains the tests for the lease stores."""
