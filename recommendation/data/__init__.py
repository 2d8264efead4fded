from .seed_universities import SEED_UNIVERSITIES

__all__ = ["SEED_UNIVERSITIES"]
