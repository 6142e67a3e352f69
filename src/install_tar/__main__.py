from install_tar.cli import entry_point

entry_point()
