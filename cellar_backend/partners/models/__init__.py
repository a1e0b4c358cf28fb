from .partner import Partner, PartnerMember

__all__ = ["Partner", "PartnerMember"]
