from gitup.cli.app import main

main()
