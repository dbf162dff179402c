"""
cifsmount: configure CIFS/SMB shares as systemd mount units
"""
