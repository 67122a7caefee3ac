"""Internal APIs for libsteamcmd, not covered by versioning policy."""
