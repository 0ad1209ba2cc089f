from telecast.cli.main import main

main()
