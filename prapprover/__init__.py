"""
PR Approver - batch approval of GitHub pull requests.
"""

__version__ = "1.0.0"
__author__ = "PR Approver Team"
__description__ = "Batch-approve GitHub pull requests with an audit trail"

__all__ = ["__version__"]
