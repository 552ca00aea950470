from psr.cli.app import main

main()
