"""
Embedding the friendly wrapper service as a string constant.

The wrapper lets operators start and stop a mount by the name they chose
instead of the escaped mount point.
"""

from inspect import cleandoc


CIFS_WRAPPER_SERVICE = (
    cleandoc(
        """
    [Unit]
    Description=Friendly wrapper for CIFS mount '{vars[name]}'
    Wants={vars[mount_unit]}
    After=network-online.target
    Requires={vars[mount_unit]}

    [Service]
    Type=oneshot
    RemainAfterExit=yes
    ExecStart={vars[systemctl]} start {vars[mount_unit]}
    ExecStop={vars[systemctl]} stop {vars[mount_unit]}

    [Install]
    WantedBy=multi-user.target
    """
    )
    + "\n"
)
