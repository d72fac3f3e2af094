"""Services Package: end-to-end pipeline from fills file to lots."""

__all__ = ['pipeline']
