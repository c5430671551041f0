from fetchprint.cli import main

main()
