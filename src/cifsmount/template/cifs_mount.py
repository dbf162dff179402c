"""
Mount unit templates, kept as string constants like the other units.
"""

from inspect import cleandoc


# a named mount, added by `cifsmount add`
CIFS_MOUNT = (
    cleandoc(
        """
    [Unit]
    Description=Mount CIFS share '{vars[name]}' ({vars[remote]} -> {vars[mount_point]})
    Wants=network-online.target
    After=network-online.target

    [Mount]
    What={vars[remote]}
    Where={vars[mount_point]}
    Type=cifs
    Options={vars[options]}

    [Install]
    WantedBy=multi-user.target
    """
    )
    + "\n"
)


# an anonymous mount, added by `cifsmount add-simple`
CIFS_SIMPLE_MOUNT = (
    cleandoc(
        """
    [Unit]
    Description=Mount CIFS share {vars[remote]} -> {vars[mount_point]}
    Wants=network-online.target
    After=network-online.target

    [Mount]
    What={vars[remote]}
    Where={vars[mount_point]}
    Type=cifs
    Options={vars[options]}

    [Install]
    WantedBy=multi-user.target
    """
    )
    + "\n"
)
