from toolsync.client.cli import main

main()
