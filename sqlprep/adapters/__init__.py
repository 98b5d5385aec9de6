"""Database adapters. Each adapter is imported on demand so optional drivers stay optional."""
