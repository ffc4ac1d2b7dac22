from edgelink.aws.remote import AwsRemote, DistributionSnapshot, RemoteQueries

__all__ = ["AwsRemote", "DistributionSnapshot", "RemoteQueries"]
